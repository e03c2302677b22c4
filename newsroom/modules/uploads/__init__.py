"""
Uploads Module
==============

Admin image uploads to the S3-compatible image host:
- POST /api/upload -- base64/data URL JSON body or multipart file
- POST /api/upload/presign -- presigned PUT URL for direct browser uploads
"""

from flask import Blueprint

uploads_bp = Blueprint('uploads', __name__, url_prefix='/api/upload')

from . import routes

__all__ = ['uploads_bp']
