# camrent/storefront/routes.py

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from camrent import db
from camrent.access import request_data
from camrent.cart import DURATIONS, session_cart
from camrent.checkout import (
    CheckoutError,
    CheckoutForm,
    EmptyCartError,
    ValidationError,
    quote,
    submit_checkout,
)
from camrent.models import Equipment
from camrent.storefront.utils import catalog, equipment_query, orders_query, parse_bool

bp = Blueprint('storefront', __name__)


@bp.route('/')
def index():
    return jsonify(**catalog())


@bp.route('/equipment')
def list_equipment():
    items = equipment_query(
        category=request.args.get('category'),
        available=parse_bool(request.args.get('available')),
        kind=request.args.get('kind'),
    ).all()
    return jsonify(equipment=[e.to_dict() for e in items])


@bp.route('/equipment/<equipment_id>')
def view_equipment(equipment_id):
    eq = db.get_or_404(Equipment, equipment_id)
    return jsonify(equipment=eq.to_dict())


# --- cart -------------------------------------------------------------------

@bp.route('/cart')
def view_cart():
    return jsonify(**session_cart().to_dict())


@bp.route('/cart/add', methods=['POST'])
def add_to_cart():
    data = request_data()
    duration = data.get('duration')
    if duration not in DURATIONS:
        return jsonify(error='Duration must be 12h or 24h'), 400
    if not data.get('equipment_id'):
        return jsonify(error='equipment_id is required'), 400
    eq = db.get_or_404(Equipment, data['equipment_id'])
    if not eq.available:
        return jsonify(error=f'{eq.name} is not available'), 409
    cart = session_cart()
    line = cart.add_item(eq, duration)
    return jsonify(line=line.to_dict(), **cart.to_dict())


@bp.route('/cart/update/<line_id>', methods=['POST'])
def update_cart_line(line_id):
    data = request_data()
    try:
        quantity = int(data.get('quantity', 1))
    except (TypeError, ValueError):
        return jsonify(error='Quantity must be a number'), 400
    cart = session_cart()
    if cart.get(line_id) is None:
        return jsonify(error='Not found'), 404
    cart.update_item(line_id, max(1, quantity))
    return jsonify(**cart.to_dict())


@bp.route('/cart/remove/<line_id>', methods=['POST'])
def remove_cart_line(line_id):
    cart = session_cart()
    cart.remove_item(line_id)
    return jsonify(**cart.to_dict())


@bp.route('/cart/clear', methods=['POST'])
def clear_cart():
    cart = session_cart()
    cart.clear_items()
    return jsonify(**cart.to_dict())


# --- checkout ---------------------------------------------------------------

@bp.route('/checkout/quote')
def checkout_quote():
    cart = session_cart()
    try:
        q = quote(cart.total_price, request.args.get('payment_type', 'advance'))
    except ValidationError as e:
        return jsonify(error=str(e)), 400
    return jsonify(items=[l.to_dict() for l in cart.lines], **q.to_dict())


@bp.route('/checkout', methods=['POST'])
def checkout():
    data = request_data()
    try:
        form = CheckoutForm.from_dict(data)
    except ValidationError as e:
        return jsonify(error=str(e)), 400
    try:
        result = submit_checkout(session_cart(), form)
    except EmptyCartError as e:
        return jsonify(error=str(e)), 400
    except CheckoutError as e:
        return jsonify(error=str(e)), 500
    return jsonify(success=True, **result.to_dict()), 201


@bp.route('/orders/mine')
@login_required
def my_orders():
    orders = orders_query(customer_email=current_user.email).all()
    return jsonify(orders=[o.to_dict() for o in orders])
