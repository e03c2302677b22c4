"""
Subscribers Routes
==================

Provides:
- POST /api/subscribe -- subscribe, or re-subscribe a soft-deleted address
- POST /api/unsubscribe -- soft delete (sets unsubscribed_at)
- GET /api/subscribe/check -- whether an email is an active subscriber

Exported helpers:
- normalize_email(value)
- get_active_subscriber_db(email)
"""

import logging
import re

from flask import jsonify, request

from newsroom.core.context import get_database, get_newsroom
from newsroom.core.errors import ConflictError, ValidationError
from newsroom.core.payload import json_body, text_field
from newsroom.modules.email import EmailError
from . import subscribers_bp

# Email validation regex, rejects consecutive dots and leading/trailing dots
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

logger = logging.getLogger(__name__)


def normalize_email(value):
    if value is not None and not isinstance(value, str):
        raise ValidationError('email must be a string')
    return (value or '').strip().lower()


def is_valid_email(email):
    return bool(email) and '@' in email and bool(EMAIL_REGEX.match(email))


# ===== Database helpers =====

def get_active_subscriber_db(email):
    """Active (not unsubscribed) subscriber row for a normalized email, or None"""
    return get_database().query_one(
        'SELECT id, email, name, is_verified, subscribed_at FROM subscribers '
        'WHERE email = :email AND unsubscribed_at IS NULL',
        {'email': email},
    )


def subscribe_db(email, name):
    """
    Add or revive a subscriber.

    Returns (id, resubscribed). Raises ConflictError if the address is
    already active.
    """
    db = get_database()
    with db.transaction() as conn:
        existing = db.fetch(
            conn, 'SELECT id, unsubscribed_at FROM subscribers WHERE email = :email', {'email': email}
        )
        if existing:
            subscriber = existing[0]
            if subscriber['unsubscribed_at'] is None:
                raise ConflictError('Already subscribed')
            db.run(
                conn,
                'UPDATE subscribers SET unsubscribed_at = NULL, subscribed_at = CURRENT_TIMESTAMP, '
                'name = COALESCE(:name, name) WHERE id = :id',
                {'id': subscriber['id'], 'name': name},
            )
            return subscriber['id'], True

        inserted = db.fetch(
            conn,
            'INSERT INTO subscribers (email, name) VALUES (:email, :name) '
            'ON CONFLICT (email) DO NOTHING RETURNING id',
            {'email': email, 'name': name},
        )
        if not inserted:
            # Lost a race with a concurrent subscribe for the same address
            raise ConflictError('Already subscribed')
        return inserted[0]['id'], False


def unsubscribe_db(email):
    return get_database().execute(
        'UPDATE subscribers SET unsubscribed_at = CURRENT_TIMESTAMP '
        'WHERE email = :email AND unsubscribed_at IS NULL',
        {'email': email},
    )


def _send_welcome(email, name):
    """Welcome mail is best effort, never fails the subscription"""
    newsroom = get_newsroom()
    if not newsroom.email.is_configured:
        return
    try:
        newsroom.email.send_welcome_email(email, name)
    except EmailError as e:
        newsroom.log.warning('subscribers', f"Welcome email failed for {email}", {'error': str(e)})


# ===== Routes =====

@subscribers_bp.route('/subscribe', methods=['POST'])
def subscribe():
    data = json_body()
    email = normalize_email(data.get('email'))
    name = text_field(data, 'name') or None

    if not is_valid_email(email):
        raise ValidationError('Valid email is required')

    subscriber_id, resubscribed = subscribe_db(email, name)
    log = get_newsroom().log
    if resubscribed:
        log.info('subscribers', f"Re-subscribed: {email}")
        message = 'Re-subscribed! Welcome back.'
    else:
        log.info('subscribers', f"New subscriber: {email}")
        message = 'Successfully subscribed!'
        _send_welcome(email, name)

    return jsonify({'message': message, 'id': subscriber_id})


@subscribers_bp.route('/unsubscribe', methods=['POST'])
def unsubscribe():
    data = json_body()
    email = normalize_email(data.get('email'))
    if not email:
        raise ValidationError('Email is required')

    if unsubscribe_db(email):
        get_newsroom().log.info('subscribers', f"Unsubscribed: {email}")
    return jsonify({'message': 'Successfully unsubscribed'})


@subscribers_bp.route('/subscribe/check', methods=['GET'])
def check_subscription():
    email = normalize_email(request.args.get('email'))
    if not email:
        raise ValidationError('Email is required')

    subscriber = get_active_subscriber_db(email)
    if subscriber is None:
        return jsonify({'subscribed': False})

    subscriber['is_verified'] = bool(subscriber['is_verified'])
    return jsonify({'subscribed': True, 'subscriber': subscriber})
