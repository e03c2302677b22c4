"""
Newsroom Modules
================

Flask blueprint modules making up the news site API.
"""

__all__ = [
    'auth', 'contact', 'dashboard', 'email', 'engagement', 'news',
    'news_public', 'polls', 'subscribers', 'uploads',
]
