from enum import Enum
from tortoise import fields, models
import uuid


class OrderStatus(str, Enum):
    PENDING = "Pending"  # Cart submitted, not yet picked up by the kitchen/bar
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"
    FAILED = "FAILED"


class Order(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    human_readable_id = fields.CharField(max_length=16, unique=True)
    restaurant = fields.ForeignKeyField("models.Restaurant", related_name="orders")
    table = fields.ForeignKeyField("models.RestaurantTable", related_name="orders")
    customer_name = fields.CharField(max_length=255, null=True)
    customer_email = fields.CharField(max_length=255, null=True)
    notes = fields.TextField(null=True)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.PENDING)
    payment_status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.UNPAID)
    payment_method = fields.CharField(max_length=32, null=True)
    total_amount = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    preparation_started_at = fields.DatetimeField(null=True)
    preparation_completed_at = fields.DatetimeField(null=True)
    updated_by_name = fields.CharField(max_length=255, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "orders"
        indexes = [
            ("restaurant_id",),          # Restaurant order queries
            ("status",),                 # Status-based filtering
            ("customer_email",),         # Order tracking lookups
            ("created_at",),             # Time-based queries
            ("restaurant_id", "created_at"),  # Composite: restaurant's latest orders
        ]


class OrderItem(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    order = fields.ForeignKeyField("models.Order", related_name="items")
    menu_item = fields.ForeignKeyField("models.MenuItem", related_name="order_items")
    quantity = fields.IntField()
    # Snapshot of the catalog price when the order was placed
    unit_price = fields.DecimalField(max_digits=12, decimal_places=2)
    line_total = fields.DecimalField(max_digits=14, decimal_places=2)
    fulfillment_status = fields.CharField(max_length=32, null=True)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("menu_item_id",),          # Menu item popularity
        ]
