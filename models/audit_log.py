from datetime import datetime
from models.db import db


class AuditLog(db.Model):
    """Security trail for the sign-in flow. Rows outlive the user they mention."""
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)  # no FK, see docstring
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. OTP_SENT, LOGIN_SUCCESS

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    details = db.Column(db.Text, nullable=True)  # JSON

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
