import logging
import os


def resolve_level(name) -> int:
    """Map a LOG_LEVEL value to a logging level; unknown names mean INFO."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


# -----------------------------------------------------------------------------
# Logger configuration for the "career" site
# -----------------------------------------------------------------------------
logger = logging.getLogger("career")
logger.setLevel(resolve_level(os.getenv("LOG_LEVEL", "INFO")))

# Avoid adding duplicate handlers if the module is imported multiple times
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    )
    logger.addHandler(handler)


# -----------------------------------------------------------------------------
# Applicant email redaction
# -----------------------------------------------------------------------------
def redact_email(email: str) -> str:
    """
    Mask an applicant's email address before it reaches the logs.

    The first and last characters of the local part survive, everything in
    between becomes '*'. The domain is kept so delivery issues per provider
    stay visible.

        "jane.doe@example.com" → "j******e@example.com"
        "jo@example.com"       → "j*o@example.com"
        "j@example.com"        → "j@example.com"
        "not-an-email"         → "<redacted>"
    """
    local, sep, domain = (email or "").strip().partition("@")
    if not sep or not local:
        return "<redacted>"

    if len(local) == 1:
        return f"{local}@{domain}"
    if len(local) == 2:
        return f"{local[0]}*{local[1]}@{domain}"

    return f"{local[0]}{'*' * (len(local) - 2)}{local[-1]}@{domain}"
