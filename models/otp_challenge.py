from datetime import datetime
from models.db import db


class OtpChallenge(db.Model):
    __tablename__ = "otp_challenges"
    __table_args__ = (
        db.Index("ix_otp_challenges_user_verified_issued", "user_id", "verified", "issued_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # HMAC of the code, the plaintext only leaves the process by email
    code_hash = db.Column(db.String(128), nullable=False)

    attempts = db.Column(db.Integer, default=0, nullable=False)
    max_attempts = db.Column(db.Integer, default=3, nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)

    # sole basis for expiry
    issued_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    verified_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", back_populates="otp_challenges")
