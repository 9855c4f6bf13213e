import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as carrental.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "carrental.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "carrental_session"

    # 8 hours session lifetime, 30 days when the user asks to stay connected
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60
    STAY_CONNECTED_LIFETIME_SECONDS = 30 * 24 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Email OTP (second sign-in step)
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))  # 5 minutes
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))

    # Window between a passed password check and the OTP step
    PENDING_LOGIN_COOKIE_NAME = "carrental_pending_login"
    PENDING_LOGIN_TTL_SECONDS = int(os.getenv("PENDING_LOGIN_TTL_SECONDS", "600"))  # 10 minutes

    # Require the OTP step for every account, not only those with mfa_enabled
    MFA_REQUIRED = os.getenv("MFA_REQUIRED", "true").lower() == "true"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    WEBSITE_NAME = os.getenv("WEBSITE_NAME", "Car Rental")
    DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite://")
    SMTP_HOST = None
    LOG_LEVEL = "DEBUG"
