"""
OTP email composition and language resolution.
"""
import pytest

from utils.i18n import STRINGS, resolve_language, translate
from utils.otp_mail import build_otp_message


@pytest.mark.parametrize("candidates, expected", [
    (("fr", "es"), "fr"),
    ((None, "es"), "es"),
    (("de", None), "en"),
    (("FR-ca",), "fr"),
    ((), "en"),
])
def test_resolve_language(candidates, expected):
    assert resolve_language(*candidates) == expected


def test_resolve_language_falls_back_to_configured_default():
    assert resolve_language(None, None, default="es") == "es"
    assert resolve_language(None, default="de") == "en"


def test_translate_falls_back_to_english():
    assert translate("HELLO", "de") == "Hello"
    assert translate("MFA_OTP_EXPIRY", "fr", minutes=5) == "Ce code expire dans 5 minutes."
    assert translate("UNKNOWN_KEY", "es") == "UNKNOWN_KEY"


def test_string_tables_are_read_only():
    with pytest.raises(TypeError):
        STRINGS["en"]["HELLO"] = "Hi"


def test_every_language_has_every_key():
    keys = set(STRINGS["en"])
    for table in STRINGS.values():
        assert set(table) == keys


def test_build_otp_message(app, user):
    subject, text, html = build_otp_message(user, "482913", "en")

    assert subject == "Your verification code"
    assert "Hello Dana Driver," in text
    assert "482913" in text
    assert "expires in 5 minutes" in text
    assert "<strong>482913</strong>" in html


def test_build_resend_message_escapes_name(app, user):
    user.full_name = "<b>Dana</b>"

    subject, _, html = build_otp_message(user, "482913", "es", resend=True)

    assert subject == "Tu nuevo código de verificación"
    assert "&lt;b&gt;Dana&lt;/b&gt;" in html
    assert "<b>Dana</b>" not in html
