# storefront/domain/order_status.py
from enum import Enum

from storefront.domain.errors import InvalidStatusTransition


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"


# tylko do przodu, jeden krok naraz
TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
}


def check_transition(current: OrderStatus | str, target: OrderStatus | str) -> OrderStatus:
    current, target = OrderStatus(current), OrderStatus(target)
    if target not in TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)
    return target
