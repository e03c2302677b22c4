"""
Storage Utility
===============

Image uploads forwarded to an S3 compatible image host (DigitalOcean Spaces
by default) via boto3.
"""

import logging
import re
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    'jpg': 'image/jpeg', 'jpeg': 'image/jpeg',
    'png': 'image/png', 'gif': 'image/gif', 'webp': 'image/webp',
    'svg': 'image/svg+xml', 'mp4': 'video/mp4',
}


class StorageError(Exception):
    """Image host missing credentials or rejecting a request"""


def sanitize_filename(filename):
    """Replace anything outside [A-Za-z0-9.-] with an underscore"""
    if not filename:
        return 'image'
    return re.sub(r'[^a-zA-Z0-9.\-]', '_', filename)


def guess_content_type(filename):
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    return CONTENT_TYPES.get(ext, 'application/octet-stream')


class ImageStore:
    """
    Uploads files to the configured bucket and returns their public URLs.

    Configuration (set in Flask app.config):
        SPACES_REGION: Region slug (default: 'fra1')
        SPACES_BUCKET: Bucket / Space name
        SPACES_KEY, SPACES_SECRET: Access credentials
        SPACES_ENDPOINT: Endpoint override (default: https://<region>.digitaloceanspaces.com)
        SPACES_FOLDER: Key prefix for uploads (default: 'mtkenyanews')
    """

    def __init__(self, app=None):
        self.region = None
        self.bucket = None
        self.access_key = None
        self.secret_key = None
        self.endpoint = None
        self.folder = 'uploads'
        self._client = None

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.region = app.config.get('SPACES_REGION', 'fra1')
        self.bucket = app.config.get('SPACES_BUCKET')
        self.access_key = app.config.get('SPACES_KEY')
        self.secret_key = app.config.get('SPACES_SECRET')
        self.endpoint = app.config.get('SPACES_ENDPOINT') or f"https://{self.region}.digitaloceanspaces.com"
        self.folder = app.config.get('SPACES_FOLDER', 'uploads')
        self._client = None

        if not self.is_configured:
            logger.warning("Image host credentials not configured - uploads disabled")

    @property
    def is_configured(self):
        return bool(self.bucket and self.access_key and self.secret_key)

    @property
    def client(self):
        if not self.is_configured:
            raise StorageError('Image host is not configured')
        if self._client is None:
            self._client = boto3.client(
                's3',
                region_name=self.region,
                endpoint_url=self.endpoint,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
            )
        return self._client

    def object_key(self, filename, now=None):
        """<folder>/<epoch millis>-<sanitized filename>"""
        millis = int((now if now is not None else time.time()) * 1000)
        return f"{self.folder}/{millis}-{sanitize_filename(filename)}"

    def public_url(self, object_key):
        return f"https://{self.bucket}.{self.region}.digitaloceanspaces.com/{object_key}"

    def upload(self, file_bytes, filename, content_type=None):
        """Put the object public-read and return (public URL, object key)"""
        object_key = self.object_key(filename)
        content_type = content_type or guess_content_type(filename or '')

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=file_bytes,
                ACL='public-read',
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Image host upload failed for {object_key}: {e}")
            raise StorageError(str(e)) from e

        logger.info(f"Uploaded {object_key} ({len(file_bytes)} bytes)")
        return self.public_url(object_key), object_key

    def presign(self, filename, content_type, expires_in=300):
        """Presigned PUT URL so a browser can upload directly"""
        object_key = self.object_key(filename)
        try:
            url = self.client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket, 'Key': object_key, 'ContentType': content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e)) from e
        return {'url': url, 'key': object_key, 'publicUrl': self.public_url(object_key)}
