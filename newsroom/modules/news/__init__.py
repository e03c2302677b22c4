"""
News Admin Module
=================

Admin API for newsroom content management.

Provides:
- Article creation, editing and deletion
- Category management
- Author management

Every route requires an admin bearer token.
"""

from flask import Blueprint

from newsroom.modules.auth import protect_blueprint

news_bp = protect_blueprint(Blueprint('news_admin', __name__, url_prefix='/api/admin'))

from . import routes

__all__ = ['news_bp']
