"""
Order status transition rules.

Two policies are supported. ``permissive`` allows any status to follow any
other, which is how the dashboard has always behaved. ``forward_only`` walks
pending -> accepted -> preparing -> ready -> completed, allows cancellation
from any open status, and freezes completed/cancelled orders.
"""

from enum import Enum
from typing import Dict, FrozenSet, Union

from app.core.errors import InvalidTransitionError
from app.models.enums import OrderStatus


class TransitionPolicy(str, Enum):
    PERMISSIVE = "permissive"
    FORWARD_ONLY = "forward_only"


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

FORWARD_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(
    current: Union[OrderStatus, str],
    target: Union[OrderStatus, str],
    policy: TransitionPolicy = TransitionPolicy.PERMISSIVE,
) -> bool:
    current = OrderStatus(current)
    target = OrderStatus(target)

    if policy == TransitionPolicy.PERMISSIVE:
        return True

    # Re-sending the current status only updates notes
    if current == target:
        return True

    return target in FORWARD_TRANSITIONS[current]


def ensure_transition(
    current: Union[OrderStatus, str],
    target: Union[OrderStatus, str],
    policy: TransitionPolicy = TransitionPolicy.PERMISSIVE,
) -> None:
    """Raise InvalidTransitionError when the policy forbids the change"""
    if not can_transition(current, target, policy):
        raise InvalidTransitionError(OrderStatus(current).value, OrderStatus(target).value)
