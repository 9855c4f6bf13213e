from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from routes import health_bp, auth_bp, otp_bp

from models import db
from security.otp import OtpPersistenceError
from utils.auth_context import load_current_user


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(otp_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(OtpPersistenceError)
    def _otp_storage_failure(exc):
        # already logged with context by the engine
        return jsonify(error="Internal server error"), 500

    @app.errorhandler(SQLAlchemyError)
    def _db_failure(exc):
        db.session.rollback()
        app.logger.exception("[app] database error")
        return jsonify(error="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from models.user import User
from security.otp import purge_expired_challenges
from security.password import hash_password

def register_cli(app):
    @app.cli.command("create-user")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--full-name", default=None)
    @click.option("--language", default=None)
    @click.option("--mfa/--no-mfa", default=True, help="Require the email OTP step.")
    def create_user(email, password, full_name, language, mfa):
        """Create an account (bootstrap)."""
        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            click.echo("User already exists")
            return

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            language=language,
            mfa_enabled=mfa,
        )
        db.session.add(user)
        db.session.commit()
        click.echo(f"{user.email} created (id={user.id})")

    @app.cli.command("purge-otps")
    def purge_otps():
        """Delete abandoned OTP challenges past their validity window."""
        count = purge_expired_challenges()
        click.echo(f"Removed {count} expired challenge(s)")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
