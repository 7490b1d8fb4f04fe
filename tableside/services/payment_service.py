import json
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from tortoise.transactions import in_transaction

from tableside.core import config
from tableside.core.errors import (
    GatewayError,
    InvalidSignature,
    MalformedEvent,
    NotAuthenticated,
    NotRefundable,
    OrderNotFound,
    PaymentNotConfigured,
    PaymentNotFound,
)
from tableside.events.outbox_utility import publish_change
from tableside.gateway.paystack import PaystackClient, verify_signature
from tableside.models.order import Order, PaymentStatus
from tableside.models.payment import Payment, PaymentProvider, PaymentRecordStatus
from tableside.services.activity_log import log_activity
from tableside.services.actors import authorize_for_restaurant
from tableside.services.order_state import can_transition_payment, ensure_payment_transition
from tableside.services.settlement import from_minor_units, record_settlement, to_minor_units, with_retry

log = logging.getLogger("tableside.payments")

CASH_METHOD = "CASH"
CHARGE_SUCCESS = "charge.success"


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PaymentInitialization:
    payment_id: UUID
    reference: str
    authorization_url: str


@dataclass(frozen=True)
class RefundReceipt:
    payment_id: UUID
    order_id: UUID
    amount: Decimal
    reference: str
    message: str = "Refund processed successfully"


def platform_commission(amount_minor: int) -> int:
    """Platform share of an online payment, in minor units."""
    commission = Decimal(amount_minor) * config.PLATFORM_COMMISSION_RATE
    return int(commission.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ----------- Cash -----------

async def mark_paid_cash(order_id: UUID, actor_id: Optional[UUID]) -> Payment:
    """Staff confirm the customer paid at the counter."""
    order = await Order.get_or_none(id=order_id)
    if not order:
        raise OrderNotFound()
    actor = await authorize_for_restaurant(actor_id, order.restaurant_id)

    async with in_transaction() as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFound()
        ensure_payment_transition(order.payment_status, PaymentStatus.PAID)

        order.payment_status = PaymentStatus.PAID
        order.payment_method = CASH_METHOD
        order.updated_by_name = actor.name
        await order.save(update_fields=["payment_status", "payment_method", "updated_by_name", "updated_at"], using_db=conn)

        payment = await Payment.create(
            order=order,
            provider=PaymentProvider.CASH,
            status=PaymentRecordStatus.SUCCESS,
            amount=order.total_amount,
            method=CASH_METHOD,
            using_db=conn
        )

        await publish_change(
            "payment",
            "succeeded",
            payment.id,
            {"order_id": str(order.id), "payment_id": str(payment.id), "provider": "cash", "amount": str(payment.amount)},
            conn=conn
        )

    await log_activity(order.restaurant_id, actor.id, "CASH_PAYMENT_MARKED", {"order_id": str(order.id)})
    log.info(f"Order {order.id} marked as paid in cash by {actor.name}")
    return payment


# ----------- Online checkout -----------

async def initialize_payment(order_id: UUID, gateway: PaystackClient) -> PaymentInitialization:
    """
    Opens a gateway checkout for the order total and records a pending
    payment carrying the gateway reference.
    """
    order = await Order.get_or_none(id=order_id).prefetch_related("restaurant")
    if not order:
        raise OrderNotFound()
    # Raises AlreadyPaid for PAID and IllegalTransition for REFUNDED
    ensure_payment_transition(order.payment_status, PaymentStatus.PAID)

    restaurant = order.restaurant
    if not restaurant.paystack_subaccount_code:
        raise PaymentNotConfigured("Restaurant payment account not configured")

    email = order.customer_email or restaurant.email
    if not email:
        raise PaymentNotConfigured("A customer e-mail address is required for online payment.")

    amount_minor = to_minor_units(order.total_amount)
    try:
        data = await gateway.initialize_transaction(
            email=email,
            amount=amount_minor,
            metadata={"order_id": str(order.id)},
            subaccount=restaurant.paystack_subaccount_code,
            transaction_charge=platform_commission(amount_minor),
        )
    except GatewayError as e:
        raise GatewayError(
            "Failed to initialize payment",
            details=e.details,
            status_code=e.upstream_status or 500,
            upstream_status=e.upstream_status,
        ) from e

    payment = await Payment.create(
        order=order,
        provider=PaymentProvider.PAYSTACK,
        status=PaymentRecordStatus.PENDING,
        amount=order.total_amount,
        reference=data["reference"],
    )
    log.info(f"Checkout opened for order {order.id} (reference {payment.reference}, {amount_minor} minor units)")
    return PaymentInitialization(
        payment_id=payment.id,
        reference=payment.reference,
        authorization_url=data["authorization_url"],
    )


# ----------- Gateway webhook -----------

def _parse_event(raw_body: bytes) -> Dict[str, Any]:
    try:
        event = json.loads(raw_body)
    except ValueError as e:
        raise MalformedEvent("Webhook body is not valid JSON") from e
    if not isinstance(event, dict):
        raise MalformedEvent("Webhook body must be a JSON object")
    return event


def _metadata(data: Dict[str, Any]) -> Dict[str, Any]:
    metadata = data.get("metadata") or {}
    # Paystack echoes metadata back as a JSON string for some integrations
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            return {}
    return metadata if isinstance(metadata, dict) else {}


async def apply_gateway_event(raw_body: bytes, signature: Optional[str], secret: Optional[str] = None) -> WebhookOutcome:
    """
    Verifies and applies a gateway webhook delivery.

    The signature is checked over the exact bytes received before anything is
    parsed. Only ``charge.success`` changes state. Deliveries are at least
    once: a repeat for an order that is already paid does not transition it
    again, and the settlement write is keyed by payment so it happens once.
    """
    secret = config.PAYSTACK_SECRET_KEY if secret is None else secret
    if not secret:
        log.error("PAYSTACK_SECRET_KEY is not set; rejecting webhook")
    if not verify_signature(raw_body, signature, secret):
        log.warning("Rejected gateway webhook: invalid signature")
        raise InvalidSignature()

    event = _parse_event(raw_body)
    if event.get("event") != CHARGE_SUCCESS:
        log.info(f"Acknowledged gateway event {event.get('event')!r} without action")
        return WebhookOutcome.IGNORED

    data = event.get("data") or {}
    if not isinstance(data, dict):
        raise MalformedEvent("Webhook data must be a JSON object")
    reference = data.get("reference")
    channel = data.get("channel")
    order_id = _metadata(data).get("order_id")
    if not order_id:
        log.error("Webhook error: order_id not found in metadata")
        raise MalformedEvent("order_id not found in metadata")
    try:
        order_uuid = UUID(str(order_id))
    except ValueError:
        raise OrderNotFound()

    outcome = WebhookOutcome.APPLIED
    async with in_transaction() as conn:
        order = await Order.filter(id=order_uuid).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFound()

        payment = None
        if reference:
            payment = await Payment.get_or_none(reference=reference).using_db(conn)
        if payment and payment.order_id != order.id:
            log.error(f"Payment {payment.id} with reference {reference} belongs to another order")
            payment = None

        if order.payment_status == PaymentStatus.PAID:
            outcome = WebhookOutcome.DUPLICATE
            if not payment or payment.status != PaymentRecordStatus.SUCCESS:
                log.warning(f"Order {order.id} already paid; charge {reference} not settled (duplicate charge)")
                payment = None
        elif not can_transition_payment(order.payment_status, PaymentStatus.PAID):
            log.warning(f"Ignoring charge {reference} for order {order.id} in payment status {order.payment_status}")
            return WebhookOutcome.IGNORED
        else:
            order.payment_status = PaymentStatus.PAID
            order.payment_method = channel
            await order.save(update_fields=["payment_status", "payment_method", "updated_at"], using_db=conn)

            if payment:
                payment.status = PaymentRecordStatus.SUCCESS
                payment.method = channel
                await payment.save(update_fields=["status", "method", "updated_at"], using_db=conn)
            else:
                # The order is confirmed anyway; without a payment row there is nothing to settle
                log.error(f"Webhook error: no payment record for reference {reference} (order {order.id})")

            await publish_change(
                "payment",
                "succeeded",
                payment.id if payment else None,
                {"order_id": str(order.id), "reference": reference, "provider": PaymentProvider.PAYSTACK.value, "channel": channel},
                conn=conn
            )

    if payment and data.get("amount") is not None:
        gross = from_minor_units(data["amount"])
        fee = from_minor_units(data.get("fees") or 0)
        await with_retry(
            lambda: record_settlement(payment, gross, fee),
            description=f"Settlement for payment {payment.id}",
        )

    if outcome == WebhookOutcome.APPLIED:
        await log_activity(
            order.restaurant_id,
            None,
            "ONLINE_PAYMENT_RECEIVED",
            {"order_id": str(order.id), "reference": reference, "channel": channel},
        )
        log.info(f"Order {order.id} paid online via {channel} (reference {reference})")
    else:
        log.info(f"Duplicate charge.success for order {order.id} (reference {reference}) acknowledged")
    return outcome


# ----------- Refund -----------

async def refund_payment(payment_id: UUID, actor_id: Optional[UUID], gateway: PaystackClient) -> RefundReceipt:
    """
    Full refund of an online payment. Authorization is settled before the
    gateway is called; cash payments cannot be refunded here.
    """
    if actor_id is None:
        raise NotAuthenticated()

    payment = await Payment.get_or_none(id=payment_id).prefetch_related("order")
    if not payment:
        raise PaymentNotFound()
    actor = await authorize_for_restaurant(actor_id, payment.order.restaurant_id)

    if payment.provider != PaymentProvider.PAYSTACK:
        raise NotRefundable("Only online payments can be refunded through this endpoint.")
    if payment.status != PaymentRecordStatus.SUCCESS or not payment.reference:
        raise NotRefundable(f"Payment in status {PaymentRecordStatus(payment.status).value} cannot be refunded.")

    try:
        await gateway.refund(payment.reference)
    except GatewayError as e:
        raise GatewayError("Failed to process refund with Paystack", details=e.details, upstream_status=e.upstream_status) from e

    async with in_transaction() as conn:
        order = await Order.filter(id=payment.order_id).using_db(conn).select_for_update().first()
        if can_transition_payment(order.payment_status, PaymentStatus.REFUNDED):
            order.payment_status = PaymentStatus.REFUNDED
            order.updated_by_name = actor.name
            await order.save(update_fields=["payment_status", "updated_by_name", "updated_at"], using_db=conn)
        else:
            log.warning(f"Order {order.id} in payment status {order.payment_status} not marked refunded")

        payment.status = PaymentRecordStatus.REFUNDED
        await payment.save(update_fields=["status", "updated_at"], using_db=conn)

        await publish_change(
            "payment",
            "refunded",
            payment.id,
            {"order_id": str(order.id), "payment_id": str(payment.id), "amount": str(payment.amount)},
            conn=conn
        )

    await log_activity(
        order.restaurant_id,
        actor.id,
        "PAYMENT_REFUNDED",
        {"order_id": str(order.id), "payment_id": str(payment.id), "reference": payment.reference},
    )
    log.info(f"Payment {payment.id} refunded by {actor.name}")
    return RefundReceipt(
        payment_id=payment.id,
        order_id=order.id,
        amount=payment.amount,
        reference=payment.reference,
    )
