from flask import Blueprint, request, jsonify, current_app

from models import db
from models.user import User
from security.otp import issue_challenge, verify_challenge
from security.session import pending_login_from_request
from utils.audit import log_event
from utils.otp_mail import send_otp_email
from utils.validation import parse_user_id


otp_bp = Blueprint("otp", __name__, url_prefix="/otp")


def _signin_required(user_id, tag):
    # only the client that passed the password check may drive the OTP step
    if pending_login_from_request(user_id) is None:
        current_app.logger.warning("[otp.%s] no pending sign-in for user %s", tag, user_id)
        return jsonify(error="Sign-in required"), 401
    return None


def _issue_and_notify(resend: bool):
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get("userId"))
    email = (data.get("email") or "").strip().lower()
    language = data.get("language")
    tag = "resend" if resend else "send"

    if user_id is None or not email:
        current_app.logger.warning("[otp.%s] userId or email missing", tag)
        return jsonify(error="Bad request: userId and email are required"), 400

    user = db.session.get(User, user_id)
    if not user or user.email.lower() != email:
        current_app.logger.warning("[otp.%s] user not found or email mismatch: %s", tag, user_id)
        return jsonify(error="User not found"), 404

    failure = _signin_required(user.id, tag)
    if failure:
        return failure

    # supersedes any pending challenge, so resend needs no extra cleanup
    code = issue_challenge(user.id)

    ok, err = send_otp_email(user, code, language=language, resend=resend)
    if not ok:
        current_app.logger.error("[otp.%s] failed to email OTP to user %s: %s", tag, user.id, err)
        log_event("OTP_SEND_FAIL", user_id=user.id, details={"resend": resend, "error": err})
        return jsonify(error="Failed to send OTP email"), 500

    message = "OTP_RESENT" if resend else "OTP_SENT"
    log_event(message, user_id=user.id)
    current_app.logger.info("[otp.%s] OTP emailed to user %s", tag, user.id)
    return jsonify(message=message), 200


@otp_bp.post("/send")
def send_code():
    return _issue_and_notify(resend=False)


@otp_bp.post("/resend")
def resend_code():
    return _issue_and_notify(resend=True)


@otp_bp.post("/verify")
def verify_code():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get("userId"))
    otp = data.get("otp")
    otp = str(otp).strip() if otp is not None and not isinstance(otp, bool) else ""

    if user_id is None or not otp:
        current_app.logger.warning("[otp.verify] userId or otp missing")
        return jsonify(error="Bad request: userId and otp are required"), 400

    failure = _signin_required(user_id, "verify")
    if failure:
        return failure

    result = verify_challenge(user_id, otp)
    if not result.success:
        log_event("OTP_VERIFY_FAIL", user_id=user_id, details={"reason": result.reason.value})
        return jsonify(success=False, message=result.reason.value), 400

    log_event("OTP_VERIFIED", user_id=user_id)
    return jsonify(success=True, message=result.reason.value), 200
