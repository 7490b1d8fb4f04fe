import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from tableside.core import config
from tableside.core.errors import SettlementError
from tableside.models.order import Order
from tableside.models.payment import Payment, SettlementStatus, Transaction

log = logging.getLogger("tableside.settlement")

T = TypeVar("T")

CENT = Decimal("0.01")


def from_minor_units(amount: int) -> Decimal:
    """Gateway amounts arrive in kobo/pesewas."""
    return (Decimal(int(amount)) / 100).quantize(CENT)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def derive_split(gross_amount: Decimal, platform_fee: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
    """Returns ``(gross, fee, net)`` with ``net = gross - fee``."""
    gross = Decimal(gross_amount).quantize(CENT)
    fee = Decimal(platform_fee).quantize(CENT)
    return gross, fee, gross - fee


async def record_settlement(payment: Payment, gross_amount: Decimal, platform_fee: Decimal, conn: Any = None) -> Transaction:
    """
    Records the settlement-pending ledger entry for a successful gateway
    charge. Keyed by payment: calling it again returns the existing entry.
    """
    gross, fee, net = derive_split(gross_amount, platform_fee)
    order = await Order.get(id=payment.order_id).using_db(conn)
    transaction, created = await Transaction.get_or_create(
        payment_id=payment.id,
        defaults={
            "restaurant_id": order.restaurant_id,
            "gross_amount": gross,
            "platform_fee": fee,
            "net_amount": net,
            "settlement_status": SettlementStatus.PENDING,
        },
        using_db=conn,
    )
    if created:
        log.info(f"Settlement recorded for payment {payment.id}: gross {gross}, fee {fee}, net {net}")
    else:
        log.info(f"Settlement for payment {payment.id} already recorded, skipping.")
    return transaction


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: Optional[int] = None,
    backoff: Optional[float] = None,
    description: str = "operation",
) -> T:
    """Runs ``operation`` up to ``attempts`` times, doubling the delay after each failure."""
    attempts = attempts or config.SETTLEMENT_MAX_ATTEMPTS
    delay = config.SETTLEMENT_BACKOFF_SECONDS if backoff is None else backoff

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts:
                log.error(f"{description} failed after {attempts} attempts: {e}")
                raise SettlementError(f"{description} failed", details=str(e)) from e
            log.warning(f"{description} failed (attempt {attempt}/{attempts}): {e}. Retrying in {delay}s")
            await asyncio.sleep(delay)
            delay *= 2
