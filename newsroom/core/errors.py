"""
API Errors
==========

Exceptions raised by route handlers. The application factory registers a
handler that turns each of them into ``{"error": message}`` with its status.
"""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ApiError):
    """Missing or invalid request fields"""
    status_code = 400


class ConflictError(ApiError):
    """Duplicate slug/email, already subscribed, already voted, restricted delete"""
    status_code = 400


class AuthError(ApiError):
    status_code = 401

    def __init__(self, message='Unauthorized', status_code=None):
        super().__init__(message, status_code)


class ForbiddenError(ApiError):
    """Business rule violations such as commenting without a subscription"""
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404

    def __init__(self, message='Not found', status_code=None):
        super().__init__(message, status_code)
