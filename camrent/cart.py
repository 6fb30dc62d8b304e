# camrent/cart.py
"""Shopping cart aggregation.

A :class:`Cart` wraps a list of :class:`CartLine` objects kept in a store.
Selections of the same equipment for the same duration are merged into one
line whose quantity grows, so a cart never holds two lines for the same
``(equipment_id, duration)`` pair.

Stores only need ``load()`` and ``save(lines)``.  In a request the store is a
:class:`SessionCartStore` writing to the signed session cookie; tests and
scripts use :class:`MemoryCartStore`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional

from flask import session

DURATIONS = ('12h', '24h')


@dataclass
class CartLine:
    id: str
    equipment_id: str
    name: str
    image_url: str
    duration: str
    unit_price: float
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data['line_total'] = self.line_total
        return data


class MemoryCartStore:
    def __init__(self, lines: Optional[List[dict]] = None) -> None:
        self.data = list(lines or [])

    def load(self) -> List[dict]:
        return list(self.data)

    def save(self, lines: List[dict]) -> None:
        self.data = list(lines)


class SessionCartStore:
    """Cart lines kept in the Flask session under ``key``."""

    def __init__(self, key: str = 'cart') -> None:
        self.key = key

    def load(self) -> List[dict]:
        return list(session.get(self.key) or [])

    def save(self, lines: List[dict]) -> None:
        session[self.key] = lines
        session.modified = True


class Cart:
    def __init__(self, store, listeners: Optional[List[Callable]] = None) -> None:
        self.store = store
        self.listeners = list(listeners or [])
        self.lines = [_line_from_dict(d) for d in store.load()]

    def subscribe(self, fn: Callable[['Cart'], None]) -> None:
        self.listeners.append(fn)

    @property
    def total_price(self) -> float:
        return sum(line.unit_price * line.quantity for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def get(self, line_id: str) -> Optional[CartLine]:
        return next((l for l in self.lines if l.id == line_id), None)

    def add_item(self, equipment, duration: str) -> CartLine:
        if duration not in DURATIONS:
            raise ValueError(f'Unknown duration {duration!r}')
        line = next(
            (l for l in self.lines
             if l.equipment_id == equipment.id and l.duration == duration),
            None,
        )
        if line:
            line.quantity += 1
        else:
            line = CartLine(
                id=uuid.uuid4().hex,
                equipment_id=equipment.id,
                name=equipment.name,
                image_url=equipment.image_url,
                duration=duration,
                unit_price=equipment.rate_for(duration),
                quantity=1,
            )
            self.lines.append(line)
        self._commit()
        return line

    def remove_item(self, line_id: str) -> None:
        before = len(self.lines)
        self.lines = [l for l in self.lines if l.id != line_id]
        if len(self.lines) != before:
            self._commit()

    def update_item(self, line_id: str, quantity: int) -> Optional[CartLine]:
        if quantity < 1:
            raise ValueError('quantity must be at least 1')
        line = self.get(line_id)
        if line:
            line.quantity = quantity
            self._commit()
        return line

    def clear_items(self) -> None:
        self.lines = []
        self._commit()

    def to_dict(self) -> dict:
        return {
            'items'      : [l.to_dict() for l in self.lines],
            'total_price': self.total_price,
            'item_count' : self.item_count,
        }

    def _commit(self) -> None:
        self.store.save([asdict(l) for l in self.lines])
        for fn in self.listeners:
            fn(self)


def _line_from_dict(d: dict) -> CartLine:
    return CartLine(
        id=d['id'],
        equipment_id=d['equipment_id'],
        name=d.get('name', ''),
        image_url=d.get('image_url', ''),
        duration=d['duration'],
        unit_price=float(d['unit_price']),
        quantity=int(d.get('quantity', 1)),
    )


def log_cart_change(cart: Cart) -> None:
    logging.debug("cart lines=%s items=%s total=%.2f",
                  len(cart), cart.item_count, cart.total_price)


def session_cart() -> Cart:
    """Cart for the current request, backed by the session cookie."""
    return Cart(SessionCartStore(), listeners=[log_cart_change])
