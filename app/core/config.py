"""
Process-wide configuration, read once from the environment at startup.

Nothing here is re-read per request: the factories in `app.main` build the
config objects, store them on `app.state`, and the routes receive them through
dependencies. Tests build their own instances instead of touching os.environ.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SmtpConfig(BaseModel):
    """Connection settings for the outbound mail relay."""

    model_config = ConfigDict(frozen=True)

    host: str = "smtp.gmail.com"
    port: int = 587
    # True → implicit TLS (SMTP over SSL), False → plain SMTP + STARTTLS if offered
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None
    recipient: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.user) and bool(self.password)

    @property
    def to_address(self) -> Optional[str]:
        # Falls back to the account identity when no dedicated inbox is set.
        return self.recipient or self.user

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        return cls(
            host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            port=int(os.getenv("SMTP_PORT", "587")),
            secure=os.getenv("SMTP_SECURE") == "true",
            user=os.getenv("SMTP_USER") or None,
            password=os.getenv("SMTP_PASS") or None,
            recipient=os.getenv("CAREER_TO_EMAIL") or None,
        )


class ServerConfig(BaseModel):
    """Where the site lives on disk and which port to listen on."""

    model_config = ConfigDict(frozen=True)

    port: int = 3000
    static_root: Path = Path(".")
    index_file: str = "index.html"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        return cls(
            port=int(os.getenv("PORT", "3000")),
            static_root=Path(os.getenv("STATIC_ROOT", ".")),
            index_file=os.getenv("INDEX_FILE", "index.html"),
        )
