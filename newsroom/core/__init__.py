"""
Newsroom Core
=============

Core utilities and shared functionality for Newsroom modules.
"""

from .config import Config
from .database import Database
from .errors import ApiError, AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from .logging_service import LoggingService
from .models import db
from .storage import ImageStore, StorageError

__all__ = [
    'Config', 'Database', 'LoggingService', 'ImageStore', 'StorageError', 'db',
    'ApiError', 'AuthError', 'ConflictError', 'ForbiddenError', 'NotFoundError', 'ValidationError',
]
