"""
Pytest fixtures for the sign-in backend.

Every test gets a fresh app on in-memory SQLite with the schema created,
and SMTP delivery replaced by an in-memory outbox when requested.
"""
import re

import pytest

import security.password
from app import create_app
from config import TestingConfig
from models import db
from models.user import User
from security.password import hash_password

PASSWORD = "Correct-Horse-9"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(security.password, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email, **kwargs):
    user = User(email=email, password_hash=hash_password(PASSWORD), **kwargs)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def user(app):
    return _make_user("driver@example.com", full_name="Dana Driver", language="fr", mfa_enabled=True)


@pytest.fixture
def other_user(app):
    return _make_user("second@example.com", full_name="Sam Second")


class Outbox(list):
    def last_code(self):
        """Code from the most recent message."""
        return re.search(r"\b(\d{6})\b", self[-1]["body"]).group(1)


@pytest.fixture
def outbox(monkeypatch):
    sent = Outbox()

    def fake_send_email(to_email, subject, body, html=None):
        sent.append({"to": to_email, "subject": subject, "body": body, "html": html})
        return True, None

    monkeypatch.setattr("utils.otp_mail.send_email", fake_send_email)
    return sent


def start_signin(client, email, password=PASSWORD, **extra):
    """Passes the password check; the client then holds the pending-login cookie."""
    payload = {"email": email, "password": password}
    payload.update(extra)
    resp = client.post("/auth/signin", json=payload)
    assert resp.status_code == 202
    return resp


@pytest.fixture
def awaiting_otp(client, user):
    return start_signin(client, user.email)
