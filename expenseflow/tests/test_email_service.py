"""
Tests for invitation emails.
"""
import smtplib

from expenseflow.core.config import settings
from expenseflow.services import email_service


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = user

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


class FailingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})


def test_invitation_contains_password():
    msg = email_service.build_invitation_email("new.hire@acme-corp.com", "s3cret12")
    assert msg["To"] == "new.hire@acme-corp.com"
    assert "s3cret12" in msg.get_body(preferencelist=("plain",)).get_content()
    assert "s3cret12" in msg.get_body(preferencelist=("html",)).get_content()


def test_disabled_email_is_only_logged(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_ENABLED", False)
    monkeypatch.setattr(email_service.smtplib, "SMTP", FailingSMTP)
    assert email_service.send_invitation_email("new.hire@acme-corp.com", "s3cret12") is True


def test_invitation_sent_over_smtp(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(settings, "EMAIL_ENABLED", True)
    monkeypatch.setattr(settings, "SMTP_USER", "mailer")
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)

    assert email_service.send_invitation_email("new.hire@acme-corp.com", "s3cret12") is True
    assert len(FakeSMTP.sent) == 1
    assert FakeSMTP.sent[0]["To"] == "new.hire@acme-corp.com"


def test_smtp_failure_is_reported(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_ENABLED", True)
    monkeypatch.setattr(email_service.smtplib, "SMTP", FailingSMTP)
    assert email_service.send_invitation_email("new.hire@acme-corp.com", "s3cret12") is False
