# camrent/auth/utils.py
"""Profile helpers for the auth blueprint."""

import logging

from camrent import db
from camrent.models import UserProfile


def default_name(user: dict) -> str:
    meta = user.get('user_metadata') or {}
    email = user.get('email') or ''
    return meta.get('name') or email.split('@')[0] or 'User'


def get_or_create_profile(user: dict) -> UserProfile:
    """
    Look up the profile for an auth provider ``user`` payload,
    creating a 'customer' profile the first time the user signs in.
    """
    profile = db.session.get(UserProfile, user['id'])
    if profile:
        return profile
    profile = UserProfile(
        id    = user['id'],
        name  = default_name(user),
        email = user.get('email') or '',
        role  = 'customer',
    )
    db.session.add(profile)
    db.session.commit()
    logging.info("created profile %s for %s", profile.id, profile.email)
    return profile
