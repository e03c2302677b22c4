"""
Email Service Module
====================

SMTP email service used by the contact form and subscriber welcome mail.
All branding is configurable through Flask app config.
"""

import html
import logging
import re
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

# Rejects consecutive dots, leading/trailing dots in local part
_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """The SMTP provider rejected or failed a send"""


class EmailService:
    """
    SMTP email service.

    Configuration (set in Flask app.config):
        SMTP_HOST: SMTP server host (default: 'mail.privateemail.com')
        SMTP_PORT: SMTP server port (default: 587, STARTTLS)
        SMTP_USER: SMTP login (sending is disabled when unset)
        SMTP_PASS: SMTP password (sending is disabled when unset)
        SMTP_FROM: Sender and contact inbox address
        EMAIL_BRAND_NAME: Brand name for emails (default: 'MT Kenya News')
    """

    def __init__(self, app=None):
        self.smtp_host = 'mail.privateemail.com'
        self.smtp_port = 587
        self.smtp_user = None
        self.smtp_password = None
        self.sender_email = None
        self.brand_name = 'MT Kenya News'

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.smtp_host = app.config.get('SMTP_HOST', 'mail.privateemail.com')
        self.smtp_port = int(app.config.get('SMTP_PORT', 587))
        self.smtp_user = app.config.get('SMTP_USER')
        self.smtp_password = app.config.get('SMTP_PASS')
        self.sender_email = app.config.get('SMTP_FROM') or self.smtp_user
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', 'MT Kenya News')

        if self.is_configured:
            logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")
        else:
            logger.warning("SMTP_USER/SMTP_PASS not configured - email sending disabled")

    @property
    def is_configured(self):
        return bool(self.smtp_user and self.smtp_password)

    def send_email(self, to: List[str], subject: str, html_body: str,
                   text_body: Optional[str] = None, reply_to: Optional[str] = None,
                   from_name: Optional[str] = None) -> int:
        """
        Send an email to each recipient over one SMTP session.

        Returns:
            int: number of messages handed to the server

        Raises:
            EmailError: when SMTP is not configured or the server fails
        """
        if not self.is_configured:
            raise EmailError('Email is not configured')

        recipients = [addr for addr in to if addr and _VALID_EMAIL.match(addr)]
        if not recipients:
            raise EmailError('No valid recipients')

        sender = f'"{from_name}" <{self.sender_email}>' if from_name else self.sender_email

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                for recipient in recipients:
                    msg = MIMEMultipart('alternative')
                    msg['From'] = sender
                    msg['To'] = recipient
                    msg['Subject'] = subject
                    if reply_to:
                        msg['Reply-To'] = reply_to
                    if text_body:
                        msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
                    msg.attach(MIMEText(html_body, 'html', 'utf-8'))
                    server.send_message(msg)
                    logger.info(f"SMTP email sent to {recipient}: {subject}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending '{subject}': {e}")
            raise EmailError(str(e)) from e

        return len(recipients)

    # ==================== Contact Form ====================

    def send_contact_notification(self, name: str, email: str, subject: str, message: str) -> int:
        """Forward a contact form submission to the site inbox"""
        safe = {k: html.escape(v) for k, v in
                {'name': name, 'email': email, 'subject': subject, 'message': message}.items()}
        html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background: linear-gradient(to right, #1e3a8a, #1e40af, #dc2626); padding: 20px; text-align: center;">
        <h1 style="color: white; margin: 0;">New Contact Form Submission</h1>
    </div>
    <div style="padding: 30px; background: #f9fafb; border: 1px solid #e5e7eb;">
        <p style="margin: 0 0 15px;"><strong>From:</strong> {safe['name']}</p>
        <p style="margin: 0 0 15px;"><strong>Email:</strong> <a href="mailto:{safe['email']}">{safe['email']}</a></p>
        <p style="margin: 0 0 15px;"><strong>Subject:</strong> {safe['subject']}</p>
        <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 20px 0;">
        <p style="margin: 0 0 10px;"><strong>Message:</strong></p>
        <div style="background: white; padding: 15px; border-radius: 8px; border: 1px solid #e5e7eb;">
            {safe['message'].replace(chr(10), '<br>')}
        </div>
    </div>
</div>
        """
        text_body = (f"New Contact Form Submission\n\nFrom: {name}\nEmail: {email}\n"
                     f"Subject: {subject}\n\nMessage:\n{message}")
        return self.send_email([self.sender_email], f"[Contact Form] {subject}", html_body, text_body,
                               reply_to=email, from_name=f"{self.brand_name} Contact")

    def send_contact_auto_reply(self, name: str, email: str, subject: str) -> int:
        """Acknowledge a contact form submission to its sender"""
        html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background: linear-gradient(to right, #1e3a8a, #1e40af, #dc2626); padding: 20px; text-align: center;">
        <h1 style="color: white; margin: 0;">Thank You for Contacting Us</h1>
    </div>
    <div style="padding: 30px; background: #f9fafb; border: 1px solid #e5e7eb;">
        <p>Dear {html.escape(name)},</p>
        <p>Thank you for reaching out to {self.brand_name}. We have received your message and will get back to you as soon as possible.</p>
        <p>Best regards,<br>{self.brand_name} Team</p>
    </div>
</div>
        """
        return self.send_email([email], f"Re: {subject} - We received your message", html_body,
                               from_name=self.brand_name)

    # ==================== Welcome Email ====================

    def send_welcome_email(self, email: str, name: Optional[str] = None) -> int:
        """Send welcome email to new subscriber"""
        greeting = f'Welcome, {name}' if name else 'Welcome'
        subject = f"Welcome to {self.brand_name}!"
        html_body = f"""
<div style="font-family: Georgia, serif; line-height: 1.6; max-width: 600px; margin: 0 auto; padding: 24px;">
    <h2 style="font-weight: normal;">{html.escape(greeting)}</h2>
    <p>Thank you for subscribing to {self.brand_name}. You can now comment on and like our stories.</p>
    <p style="font-size: 13px; color: #666666;">{self.brand_name} . {datetime.now().year}</p>
</div>
        """
        text_body = (f"{greeting}\n\nThank you for subscribing to {self.brand_name}. "
                     "You can now comment on and like our stories.")
        return self.send_email([email], subject, html_body, text_body, from_name=self.brand_name)
