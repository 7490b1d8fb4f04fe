from enum import Enum
from tortoise import fields, models
import uuid


class PaymentProvider(str, Enum):
    CASH = "cash"
    PAYSTACK = "paystack"


class PaymentRecordStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    REFUNDED = "refunded"
    FAILED = "failed"


class SettlementStatus(str, Enum):
    PENDING = "PENDING"  # Paid out by the gateway's own payout cycle
    SETTLED = "SETTLED"


class Payment(models.Model):
    """One attempt to settle an order's total, cash or online."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="payments")
    provider = fields.CharEnumField(PaymentProvider)
    status = fields.CharEnumField(PaymentRecordStatus, default=PaymentRecordStatus.PENDING)
    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    # Gateway transaction reference, absent for cash
    reference = fields.CharField(max_length=128, unique=True, null=True)
    method = fields.CharField(max_length=32, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "payments"
        indexes = [
            ("order_id",),
            ("order_id", "status"),
        ]


class Transaction(models.Model):
    """
    Settlement ledger entry for a successful gateway charge. The one-to-one
    link to the payment guarantees a single settlement per charge.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="transactions")
    payment = fields.OneToOneField("models.Payment", related_name="settlement")
    gross_amount = fields.DecimalField(max_digits=14, decimal_places=2)
    platform_fee = fields.DecimalField(max_digits=14, decimal_places=2)
    net_amount = fields.DecimalField(max_digits=14, decimal_places=2)
    settlement_status = fields.CharEnumField(SettlementStatus, default=SettlementStatus.PENDING)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "transactions"
        indexes = [
            ("restaurant_id", "settlement_status"),
        ]
