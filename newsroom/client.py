"""
Newsroom API Client
===================

HTTP client for the newsroom API, one method per endpoint.

Admin calls send ``Authorization: Bearer <token>`` using the token kept in a
``TokenStore`` (a small JSON file in the user's home directory by default).
Any non-2xx answer raises ``ClientError`` carrying the status code and the
server's ``error`` message.

Usage:
    client = NewsroomClient('http://localhost:4000')
    articles = client.get_articles(featured=True, limit=3)

    client.admin_login('admin', 'password')
    client.admin_create_article({'title': 'Hello', 'content': '...'})
"""

import base64
import json
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class ClientError(Exception):
    """Non-2xx response (or transport failure, with status None)"""

    def __init__(self, status, message):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class TokenStore:
    """Persists the admin token between runs"""

    def __init__(self, path=None):
        self.path = path or os.path.join(os.path.expanduser('~'), '.newsroom', 'token.json')

    def load(self) -> Optional[str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                return json.load(fh).get('token')
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read token file {self.path}: {e}")
            return None

    def save(self, token: str):
        os.makedirs(os.path.dirname(self.path) or '.', exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as fh:
            json.dump({'token': token}, fh)

    def clear(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


def _query(**params) -> Dict[str, Any]:
    """Drop unset parameters; booleans go over the wire as 'true'/'false'"""
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        cleaned[key] = ('true' if value else 'false') if isinstance(value, bool) else value
    return cleaned


class NewsroomClient:
    def __init__(self, base_url: str, token_store: Optional[TokenStore] = None,
                 session: Optional[requests.Session] = None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.token_store = token_store or TokenStore()
        self.session = session or requests.Session()
        self.timeout = timeout

    # ===== Transport =====

    def _request(self, method, path, params=None, json_body=None, admin=False):
        headers = {}
        if admin:
            token = self.token_store.load()
            if token:
                headers['Authorization'] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=json_body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ClientError(None, str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not 200 <= response.status_code < 300:
            message = data.get('error') if isinstance(data, dict) else None
            raise ClientError(response.status_code, message or response.reason or 'Request failed')
        return data

    def _get(self, path, params=None, admin=False):
        return self._request('GET', path, params=params, admin=admin)

    def _post(self, path, body=None, admin=False):
        return self._request('POST', path, json_body=body or {}, admin=admin)

    # ===== Articles =====

    def get_categories(self) -> List[Dict[str, Any]]:
        return self._get('/api/categories')

    def get_authors(self) -> List[Dict[str, Any]]:
        return self._get('/api/authors')

    def get_articles(self, featured=None, trending=None, category_id=None, limit=None):
        return self._get('/api/articles', _query(
            featured=featured, trending=trending, category_id=category_id, limit=limit,
        ))

    def get_breaking_articles(self, limit=None):
        return self._get('/api/articles/breaking', _query(limit=limit))

    def get_related_articles(self, category_id, exclude_id=None, limit=None):
        return self._get('/api/articles/related', _query(
            category_id=category_id, exclude_id=exclude_id, limit=limit,
        ))

    def get_article_by_slug(self, slug):
        """The article, or None when the slug is unknown"""
        return self._get(f"/api/articles/slug/{quote(slug, safe='')}")

    def increment_views(self, article_id):
        return self._post(f"/api/articles/{article_id}/views")

    def search(self, q):
        return self._get('/api/search', _query(q=q))

    # ===== Comments and likes =====

    def get_comments(self, article_id):
        return self._get(f"/api/articles/{article_id}/comments")

    def add_comment(self, article_id, email, content):
        return self._post(f"/api/articles/{article_id}/comments", {'email': email, 'content': content})

    def get_likes(self, article_id, email=None):
        return self._get(f"/api/articles/{article_id}/likes", _query(email=email))

    def toggle_like(self, article_id, email):
        return self._post(f"/api/articles/{article_id}/like", {'email': email})

    # ===== Subscribers and contact =====

    def subscribe(self, email, name=None):
        return self._post('/api/subscribe', {'email': email, 'name': name})

    def unsubscribe(self, email):
        return self._post('/api/unsubscribe', {'email': email})

    def check_subscription(self, email):
        return self._get('/api/subscribe/check', _query(email=email))

    def contact(self, name, email, subject, message):
        return self._post('/api/contact', {
            'name': name, 'email': email, 'subject': subject, 'message': message,
        })

    # ===== Polls =====

    def get_polls(self, status=None, include_options=None):
        return self._get('/api/polls', _query(status=status, include_options=include_options))

    def get_poll(self, poll_id):
        return self._get(f"/api/polls/{poll_id}")

    def vote(self, poll_id, option_id, phone_number):
        return self._post(f"/api/polls/{poll_id}/vote", {
            'option_id': option_id, 'phone_number': phone_number,
        })

    # ===== Admin =====

    def admin_login(self, username, password) -> str:
        """Log in and remember the token for later admin calls"""
        token = self._post('/api/admin/login', {'username': username, 'password': password})['token']
        self.token_store.save(token)
        return token

    def admin_logout(self):
        self.token_store.clear()

    def admin_stats(self):
        return self._get('/api/admin/stats', admin=True)

    def admin_list_articles(self):
        return self._get('/api/admin/articles', admin=True)

    def admin_get_article(self, article_id):
        return self._get(f"/api/admin/articles/{article_id}", admin=True)

    def admin_create_article(self, data):
        return self._request('POST', '/api/admin/articles', json_body=data, admin=True)

    def admin_update_article(self, article_id, data):
        return self._request('PUT', f"/api/admin/articles/{article_id}", json_body=data, admin=True)

    def admin_delete_article(self, article_id):
        return self._request('DELETE', f"/api/admin/articles/{article_id}", admin=True)

    def admin_list_categories(self):
        return self._get('/api/admin/categories', admin=True)

    def admin_create_category(self, data):
        return self._request('POST', '/api/admin/categories', json_body=data, admin=True)

    def admin_update_category(self, category_id, data):
        return self._request('PUT', f"/api/admin/categories/{category_id}", json_body=data, admin=True)

    def admin_delete_category(self, category_id):
        return self._request('DELETE', f"/api/admin/categories/{category_id}", admin=True)

    def admin_list_authors(self):
        return self._get('/api/admin/authors', admin=True)

    def admin_create_author(self, data):
        return self._request('POST', '/api/admin/authors', json_body=data, admin=True)

    def admin_update_author(self, author_id, data):
        return self._request('PUT', f"/api/admin/authors/{author_id}", json_body=data, admin=True)

    def admin_delete_author(self, author_id):
        return self._request('DELETE', f"/api/admin/authors/{author_id}", admin=True)

    def admin_list_comments(self):
        return self._get('/api/admin/comments', admin=True)

    def admin_approve_comment(self, comment_id):
        return self._request('PATCH', f"/api/admin/comments/{comment_id}/approve", admin=True)

    def admin_delete_comment(self, comment_id):
        return self._request('DELETE', f"/api/admin/comments/{comment_id}", admin=True)

    def admin_list_subscribers(self):
        return self._get('/api/admin/subscribers', admin=True)

    def admin_delete_subscriber(self, subscriber_id):
        return self._request('DELETE', f"/api/admin/subscribers/{subscriber_id}", admin=True)

    def admin_list_polls(self):
        return self._get('/api/admin/polls', admin=True)

    def admin_create_poll(self, data):
        return self._request('POST', '/api/admin/polls', json_body=data, admin=True)

    def admin_update_poll(self, poll_id, data):
        return self._request('PUT', f"/api/admin/polls/{poll_id}", json_body=data, admin=True)

    def admin_delete_poll(self, poll_id):
        return self._request('DELETE', f"/api/admin/polls/{poll_id}", admin=True)

    def admin_poll_votes(self, poll_id):
        return self._get(f"/api/admin/polls/{poll_id}/votes", admin=True)

    # ===== Uploads =====

    def upload_image(self, file_bytes: bytes, filename: str, content_type: Optional[str] = None):
        """Upload raw bytes as a base64 data URL"""
        encoded = base64.b64encode(file_bytes).decode('ascii')
        payload = f"data:{content_type};base64,{encoded}" if content_type else encoded
        return self._post('/api/upload', {'file': payload, 'filename': filename}, admin=True)

    def presign_upload(self, filename, content_type):
        return self._post('/api/upload/presign', {'filename': filename, 'contentType': content_type},
                          admin=True)
