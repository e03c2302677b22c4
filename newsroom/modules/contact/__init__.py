"""
Contact Module
==============

POST /api/contact -- forwards the site contact form to the newsroom inbox
and sends the visitor an acknowledgement.
"""

from flask import Blueprint

contact_bp = Blueprint('contact', __name__, url_prefix='/api')

from . import routes

__all__ = ['contact_bp']
