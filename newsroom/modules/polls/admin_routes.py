"""
Poll Admin Routes
=================

Provides (bearer token required):
- GET /api/admin/polls -- all polls with options and totals
- POST /api/admin/polls -- create a poll with at least two options
- PUT /api/admin/polls/<id> -- partial update (status, end_date, ...)
- DELETE /api/admin/polls/<id> -- remove the poll, its options and votes
- GET /api/admin/polls/<id>/votes -- individual votes, newest first
"""

from flask import jsonify

from newsroom.core.context import get_newsroom
from newsroom.core.errors import NotFoundError, ValidationError
from newsroom.core.payload import check_text_fields, json_body, text_field
from newsroom.core.query import parse_bool
from . import polls_admin_bp
from .database import POLL_STATUSES, POLL_TYPES, PollDatabase


def _clean_poll_fields(data):
    """Coerce writable poll fields from a JSON payload"""
    fields = check_text_fields(dict(data), ('title', 'description', 'type', 'status', 'end_date'))
    for key in ('show_results', 'allow_multiple'):
        if key in fields:
            fields[key] = parse_bool(fields[key])
    if 'end_date' in fields and not fields['end_date']:
        fields['end_date'] = None
    if 'status' in fields and fields['status'] not in POLL_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(POLL_STATUSES)}")
    if 'type' in fields and fields['type'] not in POLL_TYPES:
        raise ValidationError(f"Type must be one of: {', '.join(POLL_TYPES)}")
    if 'title' in fields:
        fields['title'] = (fields['title'] or '').strip()
        if not fields['title']:
            raise ValidationError('Title is required')
    return fields


@polls_admin_bp.route('', methods=['GET'])
def list_polls():
    polls = [PollDatabase.with_results(poll, public=False) for poll in PollDatabase.get_polls()]
    return jsonify(polls)


@polls_admin_bp.route('', methods=['POST'])
def create_poll():
    data = json_body()
    if not text_field(data, 'title'):
        raise ValidationError('Title is required')

    raw_options = data.get('options') or []
    if not isinstance(raw_options, list):
        raise ValidationError('options must be a list')
    options = [
        option for option in raw_options
        if isinstance(option, dict) and isinstance(option.get('title'), str) and option['title'].strip()
    ]
    if len(options) < 2:
        raise ValidationError('At least 2 options are required')
    options = [
        dict(check_text_fields(option, ('description', 'image_url')), title=option['title'].strip())
        for option in options
    ]

    poll_id = PollDatabase.create_poll(_clean_poll_fields(data), options)
    get_newsroom().log.info('polls', f"Poll {poll_id} created", {'options': len(options)})
    return jsonify(PollDatabase.with_results(PollDatabase.get_poll(poll_id), public=False)), 201


@polls_admin_bp.route('/<int:poll_id>', methods=['PUT', 'PATCH'])
def update_poll(poll_id):
    data = json_body()
    updated = PollDatabase.update_poll(poll_id, _clean_poll_fields(data))
    if updated is None:
        raise ValidationError('No fields to update')
    if not updated:
        raise NotFoundError('Poll not found')
    return jsonify(PollDatabase.with_results(PollDatabase.get_poll(poll_id), public=False))


@polls_admin_bp.route('/<int:poll_id>', methods=['DELETE'])
def delete_poll(poll_id):
    if not PollDatabase.delete_poll(poll_id):
        raise NotFoundError('Poll not found')
    get_newsroom().log.info('polls', f"Poll {poll_id} deleted")
    return jsonify({'ok': True})


@polls_admin_bp.route('/<int:poll_id>/votes', methods=['GET'])
def get_votes(poll_id):
    if PollDatabase.get_poll(poll_id) is None:
        raise NotFoundError('Poll not found')
    return jsonify(PollDatabase.get_votes(poll_id))
