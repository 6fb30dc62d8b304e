# camrent/access.py
"""Capability checks for the storefront and admin surfaces.

Flask-Login keeps the signed-in :class:`~camrent.models.UserProfile` as
``current_user``; its ``role`` decides what a visitor is shown.  These checks
only gate the HTTP surface.
"""

from flask import abort, jsonify, request, url_for
from flask_login import current_user


def is_authenticated() -> bool:
    return current_user.is_authenticated


def is_admin() -> bool:
    return is_authenticated() and current_user.role == 'admin'


def is_staff() -> bool:
    return is_authenticated() and current_user.role in ('staff', 'admin')


def capabilities() -> dict:
    return {
        'is_authenticated': is_authenticated(),
        'is_admin'        : is_admin(),
        'is_staff'        : is_staff(),
    }


def login_denied():
    return jsonify(error='Login required',
                   login_url=url_for('auth.login')), 401


def admin_denied():
    """Response to show instead of an admin page, or None when allowed."""
    if not is_authenticated():
        return login_denied()
    if not is_admin():
        return jsonify(error='Access denied',
                       home_url=url_for('storefront.index')), 403
    return None


def request_data():
    """JSON object body, falling back to form fields."""
    data = request.get_json(silent=True)
    if data is None:
        return request.form
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data
