"""Static notification strings. Loaded once, never mutated."""
from types import MappingProxyType

SUPPORTED_LANGUAGES = ("en", "fr", "es")

_STRINGS = {
    "en": {
        "HELLO": "Hello",
        "REGARDS": "Regards,",
        "MFA_OTP_SUBJECT": "Your verification code",
        "MFA_OTP_TITLE": "Sign-in verification",
        "MFA_OTP_MESSAGE": "Use the code below to complete your sign-in.",
        "MFA_OTP_RESEND_SUBJECT": "Your new verification code",
        "MFA_OTP_RESEND_TITLE": "New verification code",
        "MFA_OTP_RESEND_MESSAGE": "You asked for a new code. Previous codes no longer work.",
        "MFA_OTP_CODE_LABEL": "Verification code",
        "MFA_OTP_EXPIRY": "This code expires in {minutes} minutes.",
        "MFA_OTP_SECURITY_NOTE": "If you did not try to sign in, change your password.",
    },
    "fr": {
        "HELLO": "Bonjour",
        "REGARDS": "Cordialement,",
        "MFA_OTP_SUBJECT": "Votre code de vérification",
        "MFA_OTP_TITLE": "Vérification de connexion",
        "MFA_OTP_MESSAGE": "Utilisez le code ci-dessous pour terminer votre connexion.",
        "MFA_OTP_RESEND_SUBJECT": "Votre nouveau code de vérification",
        "MFA_OTP_RESEND_TITLE": "Nouveau code de vérification",
        "MFA_OTP_RESEND_MESSAGE": "Vous avez demandé un nouveau code. Les codes précédents ne sont plus valides.",
        "MFA_OTP_CODE_LABEL": "Code de vérification",
        "MFA_OTP_EXPIRY": "Ce code expire dans {minutes} minutes.",
        "MFA_OTP_SECURITY_NOTE": "Si vous n'êtes pas à l'origine de cette connexion, changez votre mot de passe.",
    },
    "es": {
        "HELLO": "Hola",
        "REGARDS": "Saludos,",
        "MFA_OTP_SUBJECT": "Tu código de verificación",
        "MFA_OTP_TITLE": "Verificación de inicio de sesión",
        "MFA_OTP_MESSAGE": "Usa el siguiente código para completar tu inicio de sesión.",
        "MFA_OTP_RESEND_SUBJECT": "Tu nuevo código de verificación",
        "MFA_OTP_RESEND_TITLE": "Nuevo código de verificación",
        "MFA_OTP_RESEND_MESSAGE": "Solicitaste un nuevo código. Los códigos anteriores ya no son válidos.",
        "MFA_OTP_CODE_LABEL": "Código de verificación",
        "MFA_OTP_EXPIRY": "Este código caduca en {minutes} minutos.",
        "MFA_OTP_SECURITY_NOTE": "Si no intentaste iniciar sesión, cambia tu contraseña.",
    },
}

STRINGS = MappingProxyType({lang: MappingProxyType(table) for lang, table in _STRINGS.items()})


def resolve_language(*candidates, default: str = "en") -> str:
    """First supported language among the candidates (request, user, ...)."""
    for lang in candidates:
        if isinstance(lang, str) and lang.strip().lower()[:2] in STRINGS:
            return lang.strip().lower()[:2]
    return default if default in STRINGS else "en"


def translate(key: str, language: str = "en", **params) -> str:
    table = STRINGS.get(language, STRINGS["en"])
    text = table.get(key, STRINGS["en"].get(key, key))
    return text.format(**params) if params else text
