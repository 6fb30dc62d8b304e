# camrent/orders.py
"""Order status transitions.

Only an administrator moves an order along, one order at a time:

    pending   -> confirmed | cancelled
    confirmed -> completed

``completed`` and ``cancelled`` are terminal.
"""

import logging

TRANSITIONS = {
    'pending'  : ('confirmed', 'cancelled'),
    'confirmed': ('completed',),
    'completed': (),
    'cancelled': (),
}


class InvalidTransition(Exception):
    def __init__(self, current, target):
        super().__init__(f'Cannot move order from {current} to {target}')
        self.current = current
        self.target = target


def allowed_next(status: str) -> tuple:
    return TRANSITIONS.get(status, ())


def transition(order, new_status: str, handled_by: str | None = None):
    """Apply ``new_status`` to ``order`` in place; the caller commits."""
    if new_status not in allowed_next(order.status):
        raise InvalidTransition(order.status, new_status)
    logging.info("order %s %s -> %s by %s", order.id, order.status, new_status, handled_by)
    order.status = new_status
    if handled_by:
        order.handled_by = handled_by
    return order
