"""
Public News Module
==================

Read-only article API for the site:
- categories and authors
- article listings (featured, trending, breaking, related)
- article by slug, view counter, search
"""

from flask import Blueprint

news_public_bp = Blueprint('news_public', __name__, url_prefix='/api')

from . import routes

__all__ = ['news_public_bp']
