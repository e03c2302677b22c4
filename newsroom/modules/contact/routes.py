import logging

from flask import jsonify

from newsroom.core.context import get_newsroom
from newsroom.core.errors import ApiError, ValidationError
from newsroom.core.payload import json_body, text_field
from newsroom.modules.email import EmailError
from . import contact_bp

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'email', 'subject', 'message')


@contact_bp.route('/contact', methods=['POST'])
def contact():
    """Relay a contact form submission by email"""
    data = json_body()
    fields = {key: text_field(data, key) for key in CONTACT_FIELDS}

    if not all(fields.values()):
        raise ValidationError('All fields are required')

    newsroom = get_newsroom()
    if newsroom.email.is_configured:
        try:
            newsroom.email.send_contact_notification(**fields)
            newsroom.email.send_contact_auto_reply(fields['name'], fields['email'], fields['subject'])
        except EmailError as e:
            newsroom.log.error('contact', f"Contact email failed: {e}", {'from': fields['email']})
            raise ApiError(str(e), 500) from e
    else:
        logger.warning(f"SMTP not configured, contact message from {fields['email']} not sent")

    newsroom.log.info('contact', f"Contact form: {fields['subject']}", {'from': fields['email']})
    return jsonify({'success': True, 'message': 'Message sent successfully'})
