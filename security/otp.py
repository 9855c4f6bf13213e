"""
Email OTP challenges for the second sign-in step.

A user has at most one unverified challenge at a time. Verification walks a
fixed order (lookup, expiry, attempt ceiling, code match) so the reason
returned is always the first structural condition that applies. Logical
failures come back as a VerifyResult; storage failures raise
OtpPersistenceError.
"""
import enum
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import NamedTuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.otp_challenge import OtpChallenge


class OtpPersistenceError(Exception):
    """The challenge store could not be read or written."""


class OtpReason(str, enum.Enum):
    NOT_FOUND = "OTP_NOT_FOUND"
    EXPIRED = "OTP_EXPIRED"
    MAX_ATTEMPTS_EXCEEDED = "MAX_ATTEMPTS_EXCEEDED"
    INVALID = "INVALID_OTP"
    VERIFIED = "OTP_VERIFIED"


class VerifyResult(NamedTuple):
    success: bool
    reason: OtpReason


def generate_code(length: int = 6) -> str:
    # uniform over [10**(n-1), 10**n - 1], never a leading zero
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def _hash_code(code: str) -> str:
    key = current_app.config["SECRET_KEY"].encode("utf-8")
    return hmac.new(key, code.encode("utf-8"), hashlib.sha256).hexdigest()


def _ttl() -> timedelta:
    return timedelta(seconds=current_app.config.get("OTP_TTL_SECONDS", 300))


def _current_challenge(user_id: int):
    return (
        OtpChallenge.query
        .filter_by(user_id=user_id, verified=False)
        .order_by(OtpChallenge.issued_at.desc(), OtpChallenge.id.desc())
        .first()
    )


def _delete(challenge: OtpChallenge) -> None:
    OtpChallenge.query.filter_by(id=challenge.id).delete(synchronize_session=False)
    db.session.commit()


def issue_challenge(user_id: int) -> str:
    """
    Supersedes any unverified challenge of the user and returns the new
    plaintext code. Delivery is the caller's job.
    """
    code = generate_code(current_app.config.get("OTP_LENGTH", 6))
    try:
        OtpChallenge.query.filter_by(user_id=user_id, verified=False).delete(
            synchronize_session=False
        )
        db.session.add(OtpChallenge(
            user_id=user_id,
            code_hash=_hash_code(code),
            attempts=0,
            max_attempts=current_app.config.get("OTP_MAX_ATTEMPTS", 3),
            verified=False,
            issued_at=datetime.utcnow(),
        ))
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[otp.issue] could not store challenge for user %s", user_id)
        raise OtpPersistenceError("could not store OTP challenge") from exc

    current_app.logger.info("[otp.issue] challenge issued for user %s", user_id)
    return code


def verify_challenge(user_id: int, submitted_code: str) -> VerifyResult:
    try:
        return _verify(user_id, submitted_code)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[otp.verify] storage failure for user %s", user_id)
        raise OtpPersistenceError("could not verify OTP challenge") from exc


def _verify(user_id: int, submitted_code: str) -> VerifyResult:
    log = current_app.logger

    challenge = _current_challenge(user_id)
    if challenge is None:
        log.warning("[otp.verify] no challenge for user %s", user_id)
        return VerifyResult(False, OtpReason.NOT_FOUND)

    if datetime.utcnow() > challenge.issued_at + _ttl():
        _delete(challenge)
        log.warning("[otp.verify] challenge expired for user %s", user_id)
        return VerifyResult(False, OtpReason.EXPIRED)

    if challenge.attempts >= challenge.max_attempts:
        _delete(challenge)
        log.warning("[otp.verify] max attempts exceeded for user %s", user_id)
        return VerifyResult(False, OtpReason.MAX_ATTEMPTS_EXCEEDED)

    if not hmac.compare_digest(challenge.code_hash, _hash_code(str(submitted_code))):
        # atomic increment; the guard keeps attempts <= max_attempts under races
        updated = (
            OtpChallenge.query
            .filter(
                OtpChallenge.id == challenge.id,
                OtpChallenge.attempts < OtpChallenge.max_attempts,
            )
            .update(
                {OtpChallenge.attempts: OtpChallenge.attempts + 1},
                synchronize_session=False,
            )
        )
        db.session.commit()
        log.warning(
            "[otp.verify] invalid code for user %s (counted=%s, max=%s)",
            user_id, bool(updated), challenge.max_attempts,
        )
        return VerifyResult(False, OtpReason.INVALID)

    # only an unverified row can flip, so a concurrent success wins once
    updated = (
        OtpChallenge.query
        .filter_by(id=challenge.id, verified=False)
        .update(
            {OtpChallenge.verified: True, OtpChallenge.verified_at: datetime.utcnow()},
            synchronize_session=False,
        )
    )
    db.session.commit()
    if not updated:
        log.warning("[otp.verify] challenge for user %s resolved concurrently", user_id)
        return VerifyResult(False, OtpReason.NOT_FOUND)

    log.info("[otp.verify] challenge verified for user %s", user_id)
    return VerifyResult(True, OtpReason.VERIFIED)


def has_verified_challenge(user_id: int, max_age_seconds: int = None) -> bool:
    """
    Fails closed: any storage error reads as not verified. With
    max_age_seconds, a verification older than that no longer counts.
    """
    try:
        query = OtpChallenge.query.filter_by(user_id=user_id, verified=True)
        if max_age_seconds is not None:
            cutoff = datetime.utcnow() - timedelta(seconds=max_age_seconds)
            query = query.filter(OtpChallenge.verified_at >= cutoff)
        row = query.order_by(OtpChallenge.issued_at.desc()).first()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("[otp.has_verified] lookup failed for user %s", user_id)
        return False
    return row is not None


def clear_challenges(user_id: int) -> int:
    """Deletes every challenge of the user, verified or not."""
    try:
        count = OtpChallenge.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[otp.clear] could not delete challenges for user %s", user_id)
        raise OtpPersistenceError("could not delete OTP challenges") from exc

    current_app.logger.info("[otp.clear] deleted %s challenge(s) for user %s", count, user_id)
    return count


def purge_expired_challenges() -> int:
    """
    Passive cleanup of abandoned unverified challenges. verify_challenge
    checks expiry on its own, so this only reclaims space.
    """
    cutoff = datetime.utcnow() - _ttl()
    try:
        count = (
            OtpChallenge.query
            .filter(OtpChallenge.verified.is_(False), OtpChallenge.issued_at < cutoff)
            .delete(synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[otp.purge] cleanup failed")
        raise OtpPersistenceError("could not purge OTP challenges") from exc

    current_app.logger.info("[otp.purge] removed %s expired challenge(s)", count)
    return count
