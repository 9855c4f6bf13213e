from html import escape

from flask import current_app

from utils.emailer import send_email
from utils.i18n import resolve_language, translate


def build_otp_message(user, code: str, language: str, resend: bool = False):
    """Returns (subject, text_body, html_body) in the given language."""
    minutes = max(1, current_app.config.get("OTP_TTL_SECONDS", 300) // 60)
    site = current_app.config.get("WEBSITE_NAME", "Car Rental")
    prefix = "MFA_OTP_RESEND" if resend else "MFA_OTP"

    def t(key, **params):
        return translate(key, language, **params)

    subject = t(f"{prefix}_SUBJECT")
    name = user.full_name or user.email

    text = "\n".join([
        f"{t('HELLO')} {name},",
        "",
        t(f"{prefix}_MESSAGE"),
        "",
        f"{t('MFA_OTP_CODE_LABEL')}: {code}",
        "",
        t("MFA_OTP_EXPIRY", minutes=minutes),
        t("MFA_OTP_SECURITY_NOTE"),
        "",
        t("REGARDS"),
        site,
    ])

    html = (
        f"<h2>{escape(t(f'{prefix}_TITLE'))}</h2>"
        f"<p>{escape(t('HELLO'))} <strong>{escape(name)}</strong>,</p>"
        f"<p>{escape(t(f'{prefix}_MESSAGE'))}</p>"
        f"<p>{escape(t('MFA_OTP_CODE_LABEL'))}</p>"
        f"<p style=\"font-size:32px;letter-spacing:8px;font-family:monospace\"><strong>{code}</strong></p>"
        f"<p>{escape(t('MFA_OTP_EXPIRY', minutes=minutes))}<br>{escape(t('MFA_OTP_SECURITY_NOTE'))}</p>"
        f"<p>{escape(t('REGARDS'))}<br><strong>{escape(site)}</strong></p>"
    )
    return subject, text, html


def send_otp_email(user, code: str, language: str = None, resend: bool = False):
    """Language comes from the request first, then the user's preference."""
    lang = resolve_language(
        language,
        user.language,
        default=current_app.config.get("DEFAULT_LANGUAGE", "en"),
    )
    subject, text, html = build_otp_message(user, code, lang, resend=resend)
    return send_email(user.email, subject, text, html=html)
