"""
Engagement Module
=================

Subscriber-only interaction with articles:
- comments (listing and posting)
- likes (count and toggle)
"""

from flask import Blueprint

engagement_bp = Blueprint('engagement', __name__, url_prefix='/api/articles')

from . import routes

__all__ = ['engagement_bp']
