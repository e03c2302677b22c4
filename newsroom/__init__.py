"""
Newsroom - JSON API for a regional news site
============================================

A Flask application serving:
- Public articles, categories, authors and search
- Subscriber-only comments and likes
- Newsletter subscriptions and the contact form
- Phone-verified voting polls
- A bearer-token admin API for content, moderation and uploads

Usage:
    from newsroom import create_app

    app = create_app()
    app.run(port=app.config['PORT'])

A matching HTTP client lives in ``newsroom.client``.
"""

__version__ = '0.1.0'

from .app import Newsroom, create_app

__all__ = ['Newsroom', 'create_app']
