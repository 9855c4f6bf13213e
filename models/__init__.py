from .db import db
from .user import User
from .audit_log import AuditLog
from .session import Session
from .otp_challenge import OtpChallenge
from .pending_login import PendingLogin
