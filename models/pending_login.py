from datetime import datetime
from models.db import db


class PendingLogin(db.Model):
    """A password check that passed and now waits for the OTP step."""
    __tablename__ = "pending_logins"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # hash of the cookie token, never the token itself
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)

    stay_connected = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
