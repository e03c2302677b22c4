"""
Auth Module
===========

Shared-secret admin authentication:
- POST /api/admin/login -- issue a bearer token for the configured account
- TokenService -- HS256 JWT signing and verification
- require_admin / protect_blueprint -- guards for admin routes
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api/admin')

from . import routes
from .utils import TokenService, protect_blueprint, require_admin

__all__ = ['auth_bp', 'TokenService', 'protect_blueprint', 'require_admin']
