"""
Contact form relay and the SMTP email service (smtplib is always mocked).
"""

from unittest.mock import MagicMock, patch

import pytest

from newsroom.modules.email import EmailError, EmailService

MESSAGE = {
    "name": "Wanjiru",
    "email": "wanjiru@example.com",
    "subject": "Story tip",
    "message": "There is a new road\nin Nyeri",
}


@pytest.fixture
def smtp_service():
    service = EmailService()
    service.smtp_user = "desk@mtkenyanews.co.ke"
    service.smtp_password = "secret"
    service.sender_email = "desk@mtkenyanews.co.ke"
    return service


# ---------------------------------------------------------------------------
# Contact endpoint
# ---------------------------------------------------------------------------

def test_contact_requires_all_fields(client):
    for missing in MESSAGE:
        body = dict(MESSAGE, **{missing: "  "})
        response = client.post("/api/contact", json=body)
        assert response.status_code == 400, missing
        assert response.get_json() == {"error": "All fields are required"}


def test_contact_rejects_non_string_fields(client):
    response = client.post("/api/contact", json=dict(MESSAGE, name=1))
    assert response.status_code == 400
    assert response.get_json() == {"error": "name must be a string"}

    response = client.post("/api/contact", json=[MESSAGE])
    assert response.get_json() == {"error": "Invalid JSON body"}


def test_contact_without_smtp_succeeds_quietly(client, newsroom):
    with patch.object(newsroom.email, "send_email") as send:
        response = client.post("/api/contact", json=MESSAGE)

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Message sent successfully"}
    send.assert_not_called()


def test_contact_sends_notification_and_auto_reply(client, newsroom):
    with patch.object(type(newsroom.email), "is_configured", new=True), \
            patch.object(newsroom.email, "send_contact_notification", return_value=1) as notify, \
            patch.object(newsroom.email, "send_contact_auto_reply", return_value=1) as reply:
        response = client.post("/api/contact", json=MESSAGE)

    assert response.status_code == 200
    notify.assert_called_once_with(**MESSAGE)
    reply.assert_called_once_with("Wanjiru", "wanjiru@example.com", "Story tip")


def test_contact_smtp_failure_is_reported(client, newsroom):
    with patch.object(type(newsroom.email), "is_configured", new=True), \
            patch.object(newsroom.email, "send_contact_notification",
                         side_effect=EmailError("Connection refused")):
        response = client.post("/api/contact", json=MESSAGE)

    assert response.status_code == 500
    assert response.get_json() == {"error": "Connection refused"}


# ---------------------------------------------------------------------------
# EmailService
# ---------------------------------------------------------------------------

def test_send_requires_configuration():
    with pytest.raises(EmailError):
        EmailService().send_email(["a@example.com"], "Hi", "<p>Hi</p>")


def test_send_skips_invalid_recipients(smtp_service):
    with pytest.raises(EmailError):
        smtp_service.send_email(["not-an-email", ""], "Hi", "<p>Hi</p>")


def test_contact_notification_goes_to_inbox_with_reply_to(smtp_service):
    with patch("smtplib.SMTP") as smtp_cls:
        server = smtp_cls.return_value.__enter__.return_value
        sent = smtp_service.send_contact_notification(**MESSAGE)

    assert sent == 1
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("desk@mtkenyanews.co.ke", "secret")
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "desk@mtkenyanews.co.ke"
    assert msg["Reply-To"] == "wanjiru@example.com"
    assert msg["Subject"] == "[Contact Form] Story tip"


def test_html_in_contact_message_is_escaped(smtp_service):
    with patch.object(smtp_service, "send_email", return_value=1) as send:
        smtp_service.send_contact_notification("<b>x</b>", "x@example.com", "s", "<script>")

    html_body = send.call_args.args[2]
    assert "<script>" not in html_body
    assert "&lt;script&gt;" in html_body


def test_smtp_errors_become_email_errors(smtp_service):
    failing = MagicMock(side_effect=OSError("Connection refused"))
    with patch("smtplib.SMTP", failing):
        with pytest.raises(EmailError, match="Connection refused"):
            smtp_service.send_welcome_email("reader@example.com", "Amani")
