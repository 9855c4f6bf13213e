import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.pending_login import PendingLogin
from models.session import Session


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def session_lifetime(stay_connected: bool = False) -> int:
    if stay_connected:
        return current_app.config.get("STAY_CONNECTED_LIFETIME_SECONDS", 30 * 24 * 60 * 60)
    return current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)


def issue_session(user_id: int, stay_connected: bool = False) -> str:
    """
    Persists a server-side session and returns the raw cookie token.
    Only the hash reaches the database.
    """
    raw_token = secrets.token_urlsafe(32)

    row = Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=session_lifetime(stay_connected)),
        stay_connected=bool(stay_connected),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    )
    db.session.add(row)
    db.session.commit()
    return raw_token


def set_session_cookie(resp, raw_token: str, stay_connected: bool = False):
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "carrental_session"),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=session_lifetime(stay_connected),
        path="/",
    )
    return resp


def session_from_request():
    raw_token = request.cookies.get(current_app.config.get("AUTH_COOKIE_NAME", "carrental_session"))
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not sess:
        return None

    now = datetime.utcnow()
    if sess.expires_at <= now:
        return None

    if not sess.stay_connected:
        idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
        last_seen = sess.last_seen_at or sess.created_at
        if last_seen + timedelta(seconds=idle_seconds) <= now:
            return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess:
        return False
    sess.revoked = True
    db.session.commit()
    return True


def _pending_cookie_name() -> str:
    return current_app.config.get("PENDING_LOGIN_COOKIE_NAME", "carrental_pending_login")


def _pending_ttl() -> int:
    return current_app.config.get("PENDING_LOGIN_TTL_SECONDS", 600)


def issue_pending_login(user_id: int, stay_connected: bool = False) -> str:
    """
    Records a passed password check and returns the raw cookie token that
    the OTP endpoints and sign-in completion require. A new one replaces
    any earlier pending login of the user.
    """
    raw_token = secrets.token_urlsafe(32)

    PendingLogin.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.add(PendingLogin(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        stay_connected=bool(stay_connected),
        expires_at=datetime.utcnow() + timedelta(seconds=_pending_ttl()),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token


def set_pending_login_cookie(resp, raw_token: str):
    resp.set_cookie(
        _pending_cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=_pending_ttl(),
        path="/",
    )
    return resp


def clear_pending_login_cookie(resp):
    resp.delete_cookie(_pending_cookie_name(), path="/")
    return resp


def pending_login_from_request(user_id: int):
    """The caller's pending login, only if it belongs to user_id and is live."""
    raw_token = request.cookies.get(_pending_cookie_name())
    if not raw_token:
        return None

    row = PendingLogin.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not row or row.user_id != user_id:
        return None
    if row.expires_at <= datetime.utcnow():
        return None
    return row


def end_pending_logins(user_id: int) -> int:
    count = PendingLogin.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.commit()
    return count
