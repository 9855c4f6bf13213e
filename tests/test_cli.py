from datetime import datetime, timedelta

from models import db
from models.otp_challenge import OtpChallenge
from models.user import User
from security.otp import issue_challenge
from security.password import check_password


def test_create_user(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "create-user", "New.Driver@Example.com",
        "--password", "Another-pass-1", "--language", "es", "--no-mfa",
    ])

    assert result.exit_code == 0
    assert "new.driver@example.com created" in result.output
    db.session.expire_all()
    user = User.query.filter_by(email="new.driver@example.com").one()
    assert user.mfa_enabled is False
    assert user.language == "es"
    assert check_password("Another-pass-1", user.password_hash)


def test_create_user_refuses_duplicate(app, user):
    result = app.test_cli_runner().invoke(args=["create-user", user.email, "--password", "x"])

    assert "already exists" in result.output


def test_purge_otps(app, user):
    issue_challenge(user.id)
    row = OtpChallenge.query.filter_by(user_id=user.id).one()
    row.issued_at = datetime.utcnow() - timedelta(minutes=10)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["purge-otps"])

    assert result.exit_code == 0
    assert "Removed 1 expired challenge(s)" in result.output
    db.session.expire_all()
    assert OtpChallenge.query.count() == 0
