"""
Request Payloads
================

Helpers for reading JSON request bodies. Malformed input becomes a
``ValidationError`` (400) instead of surfacing as a server error.
"""

from flask import request

from .errors import ValidationError


def json_body():
    """The JSON body as a dict; an absent or unparsable body reads as empty"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Invalid JSON body')
    return data


def text_field(data, key, default=''):
    """Stripped string value of ``data[key]``; null gives ``default``, other types are rejected"""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f'{key} must be a string')
    return value.strip()


def check_text_fields(data, keys):
    """Reject present, non-null values that are not strings"""
    for key in keys:
        if data.get(key) is not None and not isinstance(data[key], str):
            raise ValidationError(f'{key} must be a string')
    return data
