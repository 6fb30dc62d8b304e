import os
import sys
from datetime import datetime
from decimal import Decimal

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from camrent.cart import CartLine
from camrent.checkout import (
    CheckoutForm,
    ValidationError,
    build_orders,
    classify_duration,
    format_notification,
    line_cost,
    quote,
)


def line(unit_price, quantity, duration='24h', name='Cam', equipment_id='e1'):
    return CartLine(id=f'{equipment_id}-{duration}', equipment_id=equipment_id,
                    name=name, image_url='', duration=duration,
                    unit_price=unit_price, quantity=quantity)


def form(**overrides):
    data = {
        'customer_name': 'Asha',
        'customer_email': 'asha@example.com',
        'customer_phone': '98765',
        'rent_date': '2024-05-01T10:00',
        'return_date': '2024-05-02T09:00',
        'payment_type': 'advance',
        'payment_mode': 'upi',
    }
    data.update(overrides)
    return CheckoutForm.from_dict(data)


def test_advance_split_scenario():
    lines = [line(500, 2, equipment_id='a'), line(1200, 1, equipment_id='b')]
    total = sum(l.unit_price * l.quantity for l in lines)
    q = quote(total, 'advance')
    assert q.total == Decimal('2200.00')
    assert q.due_now == Decimal('660.00')
    assert q.due_later == Decimal('1540.00')


@pytest.mark.parametrize('total', [0, 1, 0.05, 99.99, 333.33, 1234.57, 100000])
def test_advance_parts_sum_to_total(total):
    q = quote(total, 'advance')
    assert q.due_now == round(Decimal(str(total)) * Decimal('0.30'), 2)
    assert q.due_now + q.due_later == q.total


def test_full_payment_has_nothing_later():
    q = quote(1540.5, 'full')
    assert q.due_now == Decimal('1540.50')
    assert q.due_later == 0


def test_unknown_payment_type():
    with pytest.raises(ValidationError):
        quote(100, 'layaway')


def test_classify_duration_rounds_hours_up():
    start = datetime(2024, 5, 1, 10, 0)
    assert classify_duration(start, datetime(2024, 5, 1, 22, 0)) == '12hr'
    assert classify_duration(start, datetime(2024, 5, 1, 22, 1)) == '24hr'
    assert classify_duration(start, datetime(2024, 5, 3, 10, 0)) == '24hr'


def test_line_cost():
    assert line_cost(line(500, 2), 'advance') == Decimal('300.00')
    assert line_cost(line(500, 2), 'full') == Decimal('1000.00')
    assert line_cost(line(333.33, 1), 'advance') == Decimal('100.00')


def test_build_orders_one_per_line():
    lines = [line(500, 2, equipment_id='a', duration='12h'),
             line(1200, 1, equipment_id='b')]
    orders = build_orders(lines, form(), 'ref-1')
    assert [o.equipment_id for o in orders] == ['a', 'b']
    assert [o.total_cost for o in orders] == [300.0, 360.0]
    assert all(o.status == 'pending' for o in orders)
    assert all(o.checkout_ref == 'ref-1' for o in orders)
    # 23 hours elapsed: label is 24hr whatever rate each line was priced at
    assert [o.duration for o in orders] == ['24hr', '24hr']
    assert [o.priced_duration for o in orders] == ['12h', '24h']


def test_form_validation():
    with pytest.raises(ValidationError):
        form(customer_phone='')
    with pytest.raises(ValidationError):
        form(return_date='2024-05-01T09:00')
    with pytest.raises(ValidationError):
        form(rent_date='tomorrow')
    with pytest.raises(ValidationError):
        form(payment_mode='card')
    assert form(payment_mode='UPI').payment_mode == 'upi'


def test_notification_text():
    lines = [line(500, 2, name='Sony A7', equipment_id='a', duration='24h'),
             line(1200, 1, name='Gimbal', equipment_id='b', duration='24h')]
    f = form(notes='')
    text = format_notification(lines, f, quote(2200, 'advance'))
    assert text.startswith('New Order Request:\nCustomer: Asha\n')
    assert 'Items: Sony A7 (2x), Gimbal (1x)' in text
    assert 'Payment Mode: UPI' in text
    assert 'Payment Type: Advance (₹660.00)' in text
    assert 'Total Amount: ₹2200.00' in text
    assert 'Notes: None' in text
    assert 'Check pricing' not in text


def test_notification_flags_rate_mismatch():
    lines = [line(900, 1, name='Sony A7', duration='24h')]
    f = form(return_date='2024-05-01T20:00', payment_type='full')
    text = format_notification(lines, f, quote(900, 'full'))
    assert 'Payment Type: Full Payment (₹900.00)' in text
    assert 'Check pricing: booked period is 12hr: Sony A7 (priced 24h)' in text
