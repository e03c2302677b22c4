"""
Public Poll Routes
==================

Provides:
- GET /api/polls -- published (non-draft) polls newest first (?status=, ?include_options=true)
- GET /api/polls/<id> -- one poll with options and total votes
- POST /api/polls/<id>/vote -- one vote per phone number
"""

import logging

from flask import jsonify, request

from newsroom.core.context import get_newsroom
from newsroom.core.errors import NotFoundError, ValidationError
from newsroom.core.payload import json_body
from newsroom.core.query import parse_bool, parse_int
from . import polls_bp
from .database import PollDatabase, normalize_phone, parse_datetime, utcnow

logger = logging.getLogger(__name__)


@polls_bp.route('', methods=['GET'])
def get_polls():
    polls = PollDatabase.get_polls(status=request.args.get('status') or None, public=True)
    if parse_bool(request.args.get('include_options')):
        polls = [PollDatabase.with_results(poll) for poll in polls]
    return jsonify(polls)


@polls_bp.route('/<int:poll_id>', methods=['GET'])
def get_poll(poll_id):
    poll = PollDatabase.get_poll(poll_id, public=True)
    if poll is None:
        raise NotFoundError('Poll not found')
    return jsonify(PollDatabase.with_results(poll))


@polls_bp.route('/<int:poll_id>/vote', methods=['POST'])
def vote(poll_id):
    """Cast a vote; the poll must be active and not past its end date"""
    data = json_body()
    option_id = parse_int(data.get('option_id'))
    phone_number = normalize_phone(str(data.get('phone_number') or ''))

    if option_id is None:
        raise ValidationError('Option is required')
    if phone_number is None:
        raise ValidationError('Please enter a valid Kenyan phone number (e.g., 0712345678)')

    poll = PollDatabase.get_poll(poll_id, public=True)
    if poll is None:
        raise NotFoundError('Poll not found')
    if poll['status'] != 'active':
        raise ValidationError('This poll is not active')

    end_date = parse_datetime(poll['end_date'])
    if end_date is not None and end_date < utcnow():
        raise ValidationError('This poll has ended')

    if not PollDatabase.option_belongs_to_poll(option_id, poll_id):
        raise ValidationError('Invalid option for this poll')

    PollDatabase.record_vote(poll_id, option_id, phone_number)
    get_newsroom().log.info('polls', f"Vote recorded on poll {poll_id}", {'option_id': option_id})

    poll = PollDatabase.with_results(poll)
    return jsonify({
        'message': 'Vote recorded successfully',
        'options': poll['options'],
        'total_votes': poll['total_votes'],
    })
