"""
Email Module
============

Provides SMTP email sending for the contact form and subscriber welcome mail.
"""

from .email_service import EmailError, EmailService

__all__ = ['EmailService', 'EmailError']
