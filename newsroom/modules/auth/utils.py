from datetime import datetime, timedelta, timezone
from functools import wraps

from flask import g, request
from jose import JWTError, jwt

from newsroom.core.context import get_newsroom
from newsroom.core.errors import AuthError

ALGORITHM = "HS256"


class TokenService:
    """Signs and verifies admin bearer tokens with a single shared secret"""

    def __init__(self, secret=None, hours=8):
        self.secret = secret
        self.hours = hours

    def init_app(self, app):
        self.secret = app.config.get('ADMIN_JWT_SECRET', 'change-me')
        self.hours = int(app.config.get('ADMIN_TOKEN_HOURS', 8))

    def issue(self, payload, expires_delta=None):
        """Create a signed token carrying payload plus iat/exp claims"""
        now = datetime.now(timezone.utc)
        claims = dict(payload)
        claims['iat'] = now
        claims['exp'] = now + (expires_delta if expires_delta is not None else timedelta(hours=self.hours))
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def verify(self, token):
        """Return the decoded payload or raise AuthError (bad signature, expired, malformed)"""
        if not token:
            raise AuthError()
        try:
            return jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except JWTError as e:
            raise AuthError() from e


def bearer_token():
    """Token from 'Authorization: Bearer <token>', or None"""
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return header.split(' ', 1)[1].strip() or None


def authenticate_admin():
    """Verify the bearer token and stash the payload on g.admin"""
    newsroom = get_newsroom()
    try:
        g.admin = newsroom.tokens.verify(bearer_token())
    except AuthError:
        newsroom.log.log_security_event('Rejected admin token', {'method': request.method})
        raise
    return g.admin


def admin_guard():
    """before_request hook for admin blueprints"""
    if request.method == 'OPTIONS':
        return None
    authenticate_admin()
    return None


def protect_blueprint(blueprint):
    """Require a valid admin token for every route of the blueprint"""
    blueprint.before_request(admin_guard)
    return blueprint


def require_admin(f):
    """Decorator to require a valid admin bearer token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        authenticate_admin()
        return f(*args, **kwargs)
    return decorated_function
