"""
Polls Module
============

Public voting polls (one vote per phone number) and their admin management.
"""

from flask import Blueprint

from newsroom.modules.auth import protect_blueprint

polls_bp = Blueprint('polls', __name__, url_prefix='/api/polls')
polls_admin_bp = protect_blueprint(Blueprint('polls_admin', __name__, url_prefix='/api/admin/polls'))

from . import admin_routes, routes

__all__ = ['polls_bp', 'polls_admin_bp']
