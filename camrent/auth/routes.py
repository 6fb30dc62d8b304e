# camrent/auth/routes.py

import logging

from flask import Blueprint, jsonify, session
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from camrent import db
from camrent.access import capabilities, request_data
from camrent.api import auth_provider
from camrent.auth.utils import get_or_create_profile

bp = Blueprint('auth', __name__)


def _reset_session():
    """Drop the identity but keep the visitor's cart."""
    cart = session.get('cart')
    session.clear()
    if cart:
        session['cart'] = cart


def _start_session(payload: dict):
    user = payload.get('user') or {}
    if not user.get('id') or not payload.get('access_token'):
        return jsonify(error='Sign in failed'), 502
    try:
        profile = get_or_create_profile(user)
    except SQLAlchemyError:
        db.session.rollback()
        logging.exception("profile lookup failed for %s", user.get('id'))
        return jsonify(error='Sign in failed'), 502
    _reset_session()
    login_user(profile)
    session['access_token'] = payload['access_token']
    return jsonify(
        user={'id': profile.id, 'email': profile.email},
        profile=profile.to_dict(),
        **capabilities(),
    )


@bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return jsonify(error='Email and password are required'), 400
    try:
        payload = auth_provider.get_client().sign_in(email, password)
    except auth_provider.AuthProviderError as e:
        return jsonify(error=str(e)), 401 if e.status in (400, 401) else 502
    return _start_session(payload)


@bp.route('/signup', methods=['POST'])
def signup():
    data = request_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    name = (data.get('name') or '').strip()
    if not email or not password or not name:
        return jsonify(error='Name, email and password are required'), 400
    try:
        payload = auth_provider.get_client().sign_up(email, password, name)
    except auth_provider.AuthProviderError as e:
        return jsonify(error=str(e)), 400 if e.status and e.status < 500 else 502
    if not payload.get('access_token'):
        # no session until the address is confirmed
        return jsonify(message='Check your email to confirm'), 202
    return _start_session(payload)


@bp.route('/logout', methods=['POST'])
def logout():
    token = session.get('access_token')
    if token:
        try:
            auth_provider.get_client().sign_out(token)
        except auth_provider.AuthProviderError:
            # the local session is dropped regardless
            logging.warning("remote sign out failed", exc_info=True)
    logout_user()
    _reset_session()
    return jsonify(success=True)


@bp.route('/me')
def me():
    authed = current_user.is_authenticated
    return jsonify(
        user={'id': current_user.id, 'email': current_user.email} if authed else None,
        profile=current_user.to_dict() if authed else None,
        **capabilities(),
    )
