from datetime import datetime
from models.db import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=True)

    # preferred language for notifications (en, fr, es)
    language = db.Column(db.String(8), nullable=True)

    mfa_enabled = db.Column(db.Boolean, default=False, nullable=False)
    blacklisted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    otp_challenges = db.relationship(
        "OtpChallenge",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    sessions = db.relationship(
        "Session",
        cascade="all, delete-orphan",
    )
    pending_logins = db.relationship(
        "PendingLogin",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "language": self.language,
            "blacklisted": self.blacklisted,
        }
