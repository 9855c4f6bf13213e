"""
Sign-in state machine: password check, OTP challenge, session issuance,
sign-out.
"""
from datetime import datetime, timedelta

from models import db
from models.otp_challenge import OtpChallenge
from models.pending_login import PendingLogin
from models.session import Session
from security.otp import issue_challenge, verify_challenge
from tests.conftest import PASSWORD, start_signin

COOKIE = "carrental_session"
PENDING_COOKIE = "carrental_pending_login"


def _signin(client, email, password=PASSWORD, **extra):
    payload = {"email": email, "password": password}
    payload.update(extra)
    return client.post("/auth/signin", json=payload)


def _pass_otp(client, user, outbox):
    """Runs send and verify; the client must already hold a pending sign-in."""
    client.post("/otp/send", json={"userId": user.id, "email": user.email})
    resp = client.post("/otp/verify", json={"userId": user.id, "otp": outbox.last_code()})
    assert resp.status_code == 200


def _session_cookie(client):
    return client.get_cookie(COOKIE)


def test_signin_rejects_bad_credentials(client, user):
    assert _signin(client, user.email, "wrong-password").status_code == 401
    assert _signin(client, "nobody@example.com").status_code == 401
    assert client.post("/auth/signin", json={"email": user.email}).status_code == 400


def test_signin_requires_otp(client, user):
    resp = _signin(client, user.email)

    assert resp.status_code == 202
    body = resp.get_json()
    assert body["otpRequired"] is True
    assert body["user"]["id"] == user.id
    assert body["user"]["email"] == "driver@example.com"
    assert _session_cookie(client) is None


def test_signin_without_mfa_issues_session(app, client, other_user):
    app.config["MFA_REQUIRED"] = False

    resp = _signin(client, other_user.email)

    assert resp.status_code == 200
    assert resp.get_json()["email"] == "second@example.com"
    assert _session_cookie(client) is not None
    assert client.get("/auth/me").status_code == 200


def test_per_account_mfa_when_not_global(app, client, user):
    app.config["MFA_REQUIRED"] = False

    assert _signin(client, user.email).status_code == 202


def test_complete_refused_before_otp(client, user):
    _signin(client, user.email)

    resp = client.post("/auth/signin/complete", json={"userId": user.id})

    assert resp.status_code == 403
    assert _session_cookie(client) is None


def test_complete_validates_user(client):
    assert client.post("/auth/signin/complete", json={}).status_code == 400
    assert client.post("/auth/signin/complete", json={"userId": 999}).status_code == 404


def test_full_mfa_signin(client, user, outbox):
    assert _signin(client, user.email).status_code == 202
    _pass_otp(client, user, outbox)

    resp = client.post("/auth/signin/complete", json={"userId": user.id, "stayConnected": True})

    assert resp.status_code == 200
    assert resp.get_json()["id"] == user.id
    assert resp.get_json()["blacklisted"] is False
    assert _session_cookie(client) is not None

    # the verified challenge is consumed by session issuance
    db.session.expire_all()
    assert OtpChallenge.query.filter_by(user_id=user.id).count() == 0
    assert Session.query.filter_by(user_id=user.id).one().stay_connected is True

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.get_json()["email"] == user.email

    # the pending sign-in is consumed too, so completing again starts over
    assert client.get_cookie(PENDING_COOKIE) is None
    again = client.post("/auth/signin/complete", json={"userId": user.id})
    assert again.status_code == 401


def test_blacklisted_flag_is_reported(client, user, outbox):
    user.blacklisted = True
    db.session.commit()
    start_signin(client, user.email)
    _pass_otp(client, user, outbox)

    resp = client.post("/auth/signin/complete", json={"userId": user.id})

    assert resp.get_json()["blacklisted"] is True


def test_signout_revokes_session_and_clears_challenges(client, user, outbox):
    start_signin(client, user.email)
    _pass_otp(client, user, outbox)
    assert client.post("/auth/signin/complete", json={"userId": user.id}).status_code == 200
    # stray challenge and pending sign-in left after the session was issued
    issue_challenge(user.id)
    start_signin(client, user.email)

    resp = client.post("/auth/signout")

    assert resp.status_code == 200
    db.session.expire_all()
    assert OtpChallenge.query.filter_by(user_id=user.id).count() == 0
    assert Session.query.filter_by(user_id=user.id).one().revoked is True
    assert PendingLogin.query.filter_by(user_id=user.id).count() == 0
    assert client.get_cookie(PENDING_COOKIE) is None
    assert client.get("/auth/me").status_code == 401


def test_signout_requires_session(client):
    assert client.post("/auth/signout").status_code == 401


def test_idle_session_expires(client, user, outbox):
    start_signin(client, user.email)
    _pass_otp(client, user, outbox)
    assert client.post("/auth/signin/complete", json={"userId": user.id}).status_code == 200

    db.session.expire_all()
    row = Session.query.filter_by(user_id=user.id).one()
    row.last_seen_at = datetime.utcnow() - timedelta(hours=1)
    db.session.commit()

    assert client.get("/auth/me").status_code == 401


def test_no_session_without_password_check(client, user, outbox):
    assert client.post("/otp/send", json={"userId": user.id, "email": user.email}).status_code == 401
    assert outbox == []

    # even a challenge verified behind the client's back does not help
    code = issue_challenge(user.id)
    assert verify_challenge(user.id, code).success is True

    resp = client.post("/auth/signin/complete", json={"userId": user.id})

    assert resp.status_code == 401
    assert _session_cookie(client) is None
    assert client.get("/auth/me").status_code == 401


def test_verified_challenge_is_not_usable_from_another_client(app, client, user, outbox):
    start_signin(client, user.email)
    _pass_otp(client, user, outbox)

    intruder = app.test_client()
    resp = intruder.post("/auth/signin/complete", json={"userId": user.id})
    assert resp.status_code == 401
    assert intruder.get_cookie(COOKIE) is None
    assert intruder.get("/auth/me").status_code == 401

    resp = client.post("/auth/signin/complete", json={"userId": user.id})
    assert resp.status_code == 200


def test_pending_signin_of_another_user_cannot_complete(client, user, other_user, outbox):
    code = issue_challenge(user.id)
    verify_challenge(user.id, code)
    start_signin(client, other_user.email)

    resp = client.post("/auth/signin/complete", json={"userId": user.id})

    assert resp.status_code == 401
    assert _session_cookie(client) is None


def test_stale_verification_is_refused(client, user, outbox):
    start_signin(client, user.email)
    _pass_otp(client, user, outbox)

    db.session.expire_all()
    row = OtpChallenge.query.filter_by(user_id=user.id, verified=True).one()
    row.verified_at = datetime.utcnow() - timedelta(seconds=301)
    db.session.commit()

    resp = client.post("/auth/signin/complete", json={"userId": user.id})

    assert resp.status_code == 403
    assert _session_cookie(client) is None


def test_stay_connected_carries_over_from_signin(client, user, outbox):
    start_signin(client, user.email, stayConnected=True)
    _pass_otp(client, user, outbox)

    assert client.post("/auth/signin/complete", json={"userId": user.id}).status_code == 200

    db.session.expire_all()
    assert Session.query.filter_by(user_id=user.id).one().stay_connected is True
    assert PendingLogin.query.filter_by(user_id=user.id).count() == 0


def test_pending_cookie_holds_no_stored_secret(client, user):
    start_signin(client, user.email)

    raw = client.get_cookie(PENDING_COOKIE)
    assert raw is not None
    db.session.expire_all()
    row = PendingLogin.query.filter_by(user_id=user.id).one()
    assert row.token_hash != raw.value
    assert len(row.token_hash) == 64


def test_complete_rejects_boolean_user_id(client, user):
    start_signin(client, user.email)

    assert client.post("/auth/signin/complete", json={"userId": True}).status_code == 400
    assert client.post("/auth/signin/complete", json={"userId": 0}).status_code == 400
