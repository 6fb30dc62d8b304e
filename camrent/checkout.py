# camrent/checkout.py
"""Checkout arithmetic and order submission.

Money is handled as :class:`~decimal.Decimal` rounded half-up to cents so
the advance and the remainder always add back up to the cart total.  Rates
are stored as floats on the models and converted through ``str`` first.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from camrent import db
from camrent.models import Notification, Order

ADVANCE_RATIO = Decimal('0.30')
CENT = Decimal('0.01')
PAYMENT_TYPES = ('advance', 'full')
PAYMENT_MODES = ('cash', 'upi')
CONFIRMATION_DISMISS_SECONDS = 3
FAILURE_MESSAGE = 'Failed to process order. Please try again.'
ORDER_LABELS = {'12h': '12hr', '24h': '24hr'}


class CheckoutError(Exception):
    pass


class EmptyCartError(CheckoutError):
    pass


class ValidationError(ValueError):
    pass


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class Quote:
    payment_type: str
    total: Decimal
    due_now: Decimal
    due_later: Decimal

    def to_dict(self) -> dict:
        return {
            'payment_type': self.payment_type,
            'total'       : float(self.total),
            'due_now'     : float(self.due_now),
            'due_later'   : float(self.due_later),
        }


def quote(total_price, payment_type: str) -> Quote:
    """Split ``total_price`` into what is paid now and at pickup."""
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(f'Unknown payment type {payment_type!r}')
    total = to_money(total_price)
    if payment_type == 'advance':
        due_now = (total * ADVANCE_RATIO).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        due_now = total
    return Quote(payment_type, total, due_now, total - due_now)


def classify_duration(rent_date: datetime, return_date: datetime) -> str:
    hours = math.ceil((return_date - rent_date).total_seconds() / 3600)
    return '12hr' if hours <= 12 else '24hr'


def line_cost(line, payment_type: str) -> Decimal:
    subtotal = to_money(line.unit_price) * line.quantity
    if payment_type == 'advance':
        subtotal = subtotal * ADVANCE_RATIO
    return subtotal.quantize(CENT, rounding=ROUND_HALF_UP)


def _parse_datetime(raw, label: str) -> datetime:
    try:
        value = datetime.fromisoformat(str(raw))
    except ValueError:
        raise ValidationError(f'{label} is not a valid date')
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass
class CheckoutForm:
    customer_name: str
    customer_email: str
    customer_phone: str
    rent_date: datetime
    return_date: datetime
    payment_type: str = 'advance'
    payment_mode: str = 'cash'
    notes: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'CheckoutForm':
        required = {
            'customer_name' : 'Full name',
            'customer_email': 'Email',
            'customer_phone': 'Phone number',
            'rent_date'     : 'Rent date',
            'return_date'   : 'Return date',
        }
        for key, label in required.items():
            if not str(data.get(key) or '').strip():
                raise ValidationError(f'{label} is required')

        payment_type = data.get('payment_type') or 'advance'
        payment_mode = (data.get('payment_mode') or 'cash').lower()
        if payment_type not in PAYMENT_TYPES:
            raise ValidationError(f'Unknown payment type {payment_type!r}')
        if payment_mode not in PAYMENT_MODES:
            raise ValidationError(f'Unknown payment mode {payment_mode!r}')

        rent = _parse_datetime(data['rent_date'], 'Rent date')
        ret = _parse_datetime(data['return_date'], 'Return date')
        if ret <= rent:
            raise ValidationError('Return date must be after rent date')

        return cls(
            customer_name=str(data['customer_name']).strip(),
            customer_email=str(data['customer_email']).strip(),
            customer_phone=str(data['customer_phone']).strip(),
            rent_date=rent,
            return_date=ret,
            payment_type=payment_type,
            payment_mode=payment_mode,
            notes=str(data.get('notes') or '').strip(),
        )


def build_orders(lines, form: CheckoutForm, checkout_ref: str) -> List[Order]:
    """One pending order per cart line; nothing is added to the session."""
    duration = classify_duration(form.rent_date, form.return_date)
    return [
        Order(
            customer_name   = form.customer_name,
            customer_email  = form.customer_email,
            customer_phone  = form.customer_phone,
            equipment_id    = line.equipment_id,
            duration        = duration,
            priced_duration = line.duration,
            rent_date       = form.rent_date,
            return_date     = form.return_date,
            total_cost      = float(line_cost(line, form.payment_type)),
            payment_type    = form.payment_type,
            payment_mode    = form.payment_mode,
            checkout_ref    = checkout_ref,
            status          = 'pending',
        )
        for line in lines
    ]


def _rupees(amount: Decimal) -> str:
    return f'₹{amount:.2f}'


def format_notification(lines, form: CheckoutForm, q: Quote) -> str:
    items = ', '.join(f'{l.name} ({l.quantity}x)' for l in lines)
    if q.payment_type == 'advance':
        payment = f'Advance ({_rupees(q.due_now)})'
    else:
        payment = f'Full Payment ({_rupees(q.total)})'
    text = (
        'New Order Request:\n'
        f'Customer: {form.customer_name}\n'
        f'Email: {form.customer_email}\n'
        f'Phone: {form.customer_phone}\n'
        f'Items: {items}\n'
        f'Rent Date: {form.rent_date:%Y-%m-%dT%H:%M}\n'
        f'Return Date: {form.return_date:%Y-%m-%dT%H:%M}\n'
        f'Payment Mode: {form.payment_mode.upper()}\n'
        f'Payment Type: {payment}\n'
        f'Total Amount: {_rupees(q.total)}\n'
        f'Notes: {form.notes or "None"}'
    )

    # Lines priced at one rate but booked for a span the other rate covers
    booked = classify_duration(form.rent_date, form.return_date)
    mismatched = [l for l in lines if ORDER_LABELS[l.duration] != booked]
    if mismatched:
        names = ', '.join(f'{l.name} (priced {l.duration})' for l in mismatched)
        text += f'\nCheck pricing: booked period is {booked}: {names}'
    return text


@dataclass
class CheckoutResult:
    checkout_ref: str
    quote: Quote
    orders: List[Order] = field(default_factory=list)
    dismiss_after: int = CONFIRMATION_DISMISS_SECONDS

    def to_dict(self) -> dict:
        return {
            'checkout_ref' : self.checkout_ref,
            'quote'        : self.quote.to_dict(),
            'orders'       : [o.to_dict() for o in self.orders],
            'payment_mode' : self.orders[0].payment_mode if self.orders else None,
            'dismiss_after': self.dismiss_after,
        }


def submit_checkout(cart, form: CheckoutForm) -> CheckoutResult:
    """Persist one order per cart line plus an admin notification.

    Orders are committed one at a time.  If a later commit fails the earlier
    orders stay; they share ``checkout_ref`` so the batch can be found and
    reconciled from the admin orders list.
    """
    if not cart.lines:
        raise EmptyCartError('Your cart is empty')

    q = quote(cart.total_price, form.payment_type)
    ref = str(uuid.uuid4())
    orders = build_orders(cart.lines, form, ref)
    committed = 0
    try:
        for order in orders:
            db.session.add(order)
            db.session.commit()
            committed += 1
        db.session.add(Notification(
            body=format_notification(cart.lines, form, q),
            author=form.customer_name,
        ))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.exception(
            "checkout %s failed after %s/%s orders", ref, committed, len(orders)
        )
        raise CheckoutError(FAILURE_MESSAGE) from e

    logging.info(
        "checkout %s orders=%s total=%s due_now=%s",
        ref, len(orders), q.total, q.due_now,
    )
    cart.clear_items()
    return CheckoutResult(checkout_ref=ref, quote=q, orders=orders)
