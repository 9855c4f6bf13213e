import json
from flask import request, current_app
from sqlalchemy.exc import SQLAlchemyError
from models import db
from models.audit_log import AuditLog


def log_event(action: str, user_id=None, details=None):
    """
    Writes one audit row. Callers log after their own work is committed, so
    a failed write is logged and dropped rather than turning that work into
    an error response.
    """
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")

    try:
        db.session.add(AuditLog(
            user_id=user_id,
            action=action,
            ip=ip,
            user_agent=user_agent[:255] if user_agent else None,
            details=json.dumps(details) if details else None,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("[audit] could not record %s for user %s", action, user_id)
