"""
Subscribers Module
==================

Provides:
- Public API for newsletter subscriptions (subscribe, re-subscribe, unsubscribe)
- Subscription check used by the comment and like forms
- Helper for other modules (get_active_subscriber_db)
"""

from flask import Blueprint

subscribers_bp = Blueprint('subscribers', __name__, url_prefix='/api')

from . import routes
from .routes import get_active_subscriber_db, normalize_email

__all__ = ['subscribers_bp', 'get_active_subscriber_db', 'normalize_email']
