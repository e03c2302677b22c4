import base64
import binascii
import logging
import re

from flask import jsonify, request

from newsroom.core.context import get_newsroom
from newsroom.core.errors import ApiError, ValidationError
from newsroom.core.payload import json_body, text_field
from newsroom.core.storage import StorageError, guess_content_type
from newsroom.modules.auth import require_admin
from . import uploads_bp

logger = logging.getLogger(__name__)

DATA_URL = re.compile(r'^data:(?P<type>[\w.+-]+/[\w.+-]+)?(;[\w=-]+)*;base64,(?P<data>.*)$', re.DOTALL)


def decode_file_payload(payload):
    """
    Decode a base64 string or data URL.

    Returns (bytes, content type or None).
    """
    content_type = None
    match = DATA_URL.match(payload)
    if match:
        content_type = match.group('type')
        payload = match.group('data')
    try:
        return base64.b64decode(payload, validate=False), content_type
    except (binascii.Error, ValueError) as e:
        raise ValidationError('Invalid file data') from e


def _read_upload():
    """(bytes, filename, content type) from a multipart or JSON request"""
    if request.files:
        upload = request.files.get('file')
        if upload is None or not upload.filename:
            raise ValidationError('No file provided')
        return upload.read(), upload.filename, upload.mimetype or None

    data = json_body()
    payload = text_field(data, 'file')
    if not payload:
        raise ValidationError('No file provided')
    file_bytes, content_type = decode_file_payload(payload)
    if not file_bytes:
        raise ValidationError('No file provided')
    return file_bytes, text_field(data, 'filename') or 'image', content_type


@uploads_bp.route('', methods=['POST'])
@require_admin
def upload():
    """Store an image on the image host and return its public URL"""
    file_bytes, filename, content_type = _read_upload()
    newsroom = get_newsroom()

    try:
        url, key = newsroom.storage.upload(file_bytes, filename, content_type or guess_content_type(filename))
    except StorageError as e:
        newsroom.log.error('uploads', f"Upload failed: {e}", {'filename': filename})
        raise ApiError(str(e), 500) from e

    newsroom.log.info('uploads', f"Uploaded {key}", {'bytes': len(file_bytes)})
    return jsonify({'url': url, 'public_id': key, 'filename': filename})


@uploads_bp.route('/presign', methods=['POST'])
@require_admin
def presign():
    data = json_body()
    filename = text_field(data, 'filename')
    content_type = text_field(data, 'contentType')
    if not filename or not content_type:
        raise ValidationError('filename and contentType are required')

    storage = get_newsroom().storage
    if not storage.is_configured:
        raise ValidationError('Image storage is not configured')

    try:
        return jsonify(storage.presign(filename, content_type))
    except StorageError as e:
        logger.error(f"Presign failed for {filename}: {e}")
        raise ApiError(str(e), 500) from e
