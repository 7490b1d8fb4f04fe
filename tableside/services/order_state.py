"""
Order and payment status machines.

Both machines are plain transition tables: a status may move to any status
listed for it, or stay where it is. Terminal statuses map to an empty set.
"""
from typing import Dict, FrozenSet

from tableside.core.errors import AlreadyPaid, IllegalTransition
from tableside.models.order import OrderStatus, PaymentStatus

ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.UNPAID: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    current, new = OrderStatus(current), OrderStatus(new)
    return current == new or new in ORDER_TRANSITIONS[current]


def ensure_transition(current: OrderStatus, new: OrderStatus) -> None:
    if not can_transition(current, new):
        raise IllegalTransition(
            f"Cannot move order from {OrderStatus(current).value} to {OrderStatus(new).value}.",
            details={"from": OrderStatus(current).value, "to": OrderStatus(new).value},
        )


def can_transition_payment(current: PaymentStatus, new: PaymentStatus) -> bool:
    current, new = PaymentStatus(current), PaymentStatus(new)
    return current == new or new in PAYMENT_TRANSITIONS[current]


def ensure_payment_transition(current: PaymentStatus, new: PaymentStatus) -> None:
    current, new = PaymentStatus(current), PaymentStatus(new)
    if current == new == PaymentStatus.PAID:
        raise AlreadyPaid()
    if not can_transition_payment(current, new):
        raise IllegalTransition(
            f"Cannot move payment status from {current.value} to {new.value}.",
            details={"from": current.value, "to": new.value},
        )
