import pytest

from tableside.core.errors import AlreadyPaid, IllegalTransition
from tableside.models.order import OrderStatus, PaymentStatus
from tableside.services.order_state import (
    ORDER_TRANSITIONS,
    can_transition,
    can_transition_payment,
    ensure_payment_transition,
    ensure_transition,
)


@pytest.mark.parametrize("current,new", [
    (OrderStatus.PENDING, OrderStatus.IN_PROGRESS),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED),
    (OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED),
])
def test_legal_order_transitions(current, new):
    assert can_transition(current, new)
    ensure_transition(current, new)


@pytest.mark.parametrize("current,new", [
    (OrderStatus.COMPLETED, OrderStatus.IN_PROGRESS),
    (OrderStatus.COMPLETED, OrderStatus.PENDING),
    (OrderStatus.CANCELLED, OrderStatus.PENDING),
    (OrderStatus.CANCELLED, OrderStatus.COMPLETED),
    (OrderStatus.PENDING, OrderStatus.COMPLETED),
    (OrderStatus.IN_PROGRESS, OrderStatus.PENDING),
])
def test_illegal_order_transitions_are_rejected(current, new):
    assert not can_transition(current, new)
    with pytest.raises(IllegalTransition) as excinfo:
        ensure_transition(current, new)
    assert excinfo.value.details == {"from": current.value, "to": new.value}


def test_same_status_is_allowed_everywhere():
    for status in OrderStatus:
        assert can_transition(status, status)


def test_terminal_statuses_have_no_exits():
    assert ORDER_TRANSITIONS[OrderStatus.COMPLETED] == frozenset()
    assert ORDER_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()


def test_raw_status_strings_are_accepted():
    assert can_transition("Pending", "In-Progress")
    assert not can_transition("Completed", "Pending")


def test_payment_machine():
    assert can_transition_payment(PaymentStatus.UNPAID, PaymentStatus.PAID)
    assert can_transition_payment(PaymentStatus.FAILED, PaymentStatus.PAID)
    assert can_transition_payment(PaymentStatus.PAID, PaymentStatus.REFUNDED)
    assert not can_transition_payment(PaymentStatus.UNPAID, PaymentStatus.REFUNDED)
    assert not can_transition_payment(PaymentStatus.REFUNDED, PaymentStatus.PAID)


def test_paying_twice_raises_already_paid():
    with pytest.raises(AlreadyPaid):
        ensure_payment_transition(PaymentStatus.PAID, PaymentStatus.PAID)


def test_refunded_payment_cannot_be_paid_again():
    with pytest.raises(IllegalTransition):
        ensure_payment_transition(PaymentStatus.REFUNDED, PaymentStatus.PAID)
