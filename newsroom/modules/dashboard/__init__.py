"""
Dashboard Module
================

Admin dashboard API for the newsroom.

Provides:
- Site statistics (most viewed articles, totals)
- Comment moderation
- Subscriber management
"""

from flask import Blueprint

from newsroom.modules.auth import protect_blueprint

# Blueprint name is 'admin', the auth blueprint owns the login route on the same prefix
dashboard_bp = protect_blueprint(Blueprint('admin', __name__, url_prefix='/api/admin'))

from . import routes

__all__ = ['dashboard_bp']
