import hmac

from flask import current_app, jsonify

from newsroom.core.context import get_newsroom
from newsroom.core.errors import AuthError, ValidationError
from newsroom.core.payload import json_body

from . import auth_bp


@auth_bp.route('/login', methods=['POST'])
def login():
    """Exchange the configured admin username/password for a bearer token"""
    data = json_body()
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        raise ValidationError('Missing credentials')

    newsroom = get_newsroom()
    expected_user = current_app.config.get('ADMIN_USER', 'admin')
    expected_pass = current_app.config.get('ADMIN_PASS', 'password')

    user_ok = hmac.compare_digest(str(username), str(expected_user))
    pass_ok = hmac.compare_digest(str(password), str(expected_pass))
    if not (user_ok and pass_ok):
        newsroom.log.log_security_event('Failed admin login', {'username': str(username)[:100]})
        raise AuthError('Invalid credentials')

    token = newsroom.tokens.issue({'username': username})
    newsroom.log.info('auth', f"Admin login: {username}")
    return jsonify({'token': token})
