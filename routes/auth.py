from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import User
from security.otp import clear_challenges, has_verified_challenge
from security.password import check_password
from security.session import (
    clear_pending_login_cookie,
    end_pending_logins,
    issue_pending_login,
    issue_session,
    pending_login_from_request,
    revoke_session,
    set_pending_login_cookie,
    set_session_cookie,
)
from utils.audit import log_event
from utils.auth_context import login_required
from utils.validation import parse_user_id


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _mfa_required(user: User) -> bool:
    return bool(current_app.config.get("MFA_REQUIRED", True) or user.mfa_enabled)


def _signed_in_response(user: User, stay_connected: bool):
    raw_token = issue_session(user.id, stay_connected=stay_connected)
    resp = jsonify(user.to_dict())
    return set_session_cookie(resp, raw_token, stay_connected=stay_connected)


@auth_bp.post("/signin")
def signin():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    stay_connected = bool(data.get("stayConnected"))

    if not email or not password:
        return jsonify(error="Bad request: email and password are required"), 400

    user = User.query.filter_by(email=email).first()
    if not user or not check_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, details={"email": email})
        return jsonify(error="Invalid credentials"), 401

    if _mfa_required(user):
        # password accepted; the pending-login cookie carries it to the OTP step
        raw_token = issue_pending_login(user.id, stay_connected=stay_connected)
        resp = set_pending_login_cookie(jsonify(otpRequired=True, user=user.to_dict()), raw_token)
        log_event("LOGIN_OTP_REQUIRED", user_id=user.id)
        return resp, 202

    resp = _signed_in_response(user, stay_connected)
    log_event("LOGIN_SUCCESS", user_id=user.id, details={"mfa": False})
    return resp, 200


@auth_bp.post("/signin/complete")
def signin_complete():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get("userId"))
    if user_id is None:
        return jsonify(error="Bad request: userId is required"), 400

    user = db.session.get(User, user_id)
    if not user:
        return jsonify(error="User not found"), 404

    pending = pending_login_from_request(user.id)
    if pending is None:
        log_event("LOGIN_MFA_INCOMPLETE", user_id=user.id, details={"pending": False})
        return jsonify(error="Sign-in required"), 401

    max_age = current_app.config.get("OTP_TTL_SECONDS", 300)
    if not has_verified_challenge(user.id, max_age_seconds=max_age):
        log_event("LOGIN_MFA_INCOMPLETE", user_id=user.id, details={"pending": True})
        return jsonify(error="OTP verification required"), 403

    stay_connected = bool(data.get("stayConnected", pending.stay_connected))

    # stray challenges and the pending login must not be replayed later
    clear_challenges(user.id)
    end_pending_logins(user.id)

    resp = clear_pending_login_cookie(_signed_in_response(user, stay_connected))

    log_event("LOGIN_SUCCESS", user_id=user.id, details={"mfa": True})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(g.user.to_dict()), 200


@auth_bp.post("/signout")
@login_required
def signout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "carrental_session")

    revoke_session(request.cookies.get(cookie_name))
    clear_challenges(g.user.id)
    end_pending_logins(g.user.id)
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Signed out")
    resp.delete_cookie(cookie_name, path="/")
    return clear_pending_login_cookie(resp), 200
