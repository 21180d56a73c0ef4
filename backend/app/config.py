"""
Application configuration.

Settings are read from the environment (and an optional .env file) once per
process and handed to every component through the ``get_settings`` FastAPI
dependency. The bundle is frozen: nothing mutates it after startup.

Environment variables
---------------------
MAX_UPLOAD_SIZE_MB      Upload limit in MiB (default: 1, fractions allowed).
FILE_UPLOAD_FIELD_KEY   Form field carrying the upload (default: "file").
HCAPTCHA_ENABLED        Turns captcha verification on. Any non-empty value enables
                        it except "0", "false", "no" and "off".
HCAPTCHA_SECRET_KEY     Server-held verifier secret (required when enabled).
HCAPTCHA_VERIFY_API     Verifier endpoint URL (required when enabled).
SMTP_SERVER             Relay host (required).
SMTP_PORT               Relay port (required).
SMTP_USERNAME           Relay login (required).
SMTP_PASSWORD           Relay password (required).
SMTP_FROM               Fixed sender address (required).
SMTP_RCPT               Fixed recipient address (required on top of the five
                        relay keys above; a send without a recipient can only
                        fail).
SMTP_SUBJECT            Subject line (default: "Contact Form Submission").
SMTP_USE_TLS            Implicit TLS to the relay (default: true).
FORM_ESCAPE_HTML        HTML-escape submitted keys and values (default: true).
CORS_ORIGINS            Comma-separated list of allowed browser origins.
LOG_LEVEL               Logging level (default: INFO).
"""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

DEFAULT_SUBJECT = "Contact Form Submission"

_FALSY = {"0", "false", "no", "off"}

# Setting attribute -> environment variable, in the order they are reported
_SMTP_KEYS = {
    "smtp_server": "SMTP_SERVER",
    "smtp_port": "SMTP_PORT",
    "smtp_username": "SMTP_USERNAME",
    "smtp_password": "SMTP_PASSWORD",
    "smtp_from": "SMTP_FROM",
    "smtp_rcpt": "SMTP_RCPT",
}

_CAPTCHA_KEYS = {
    "hcaptcha_secret_key": "HCAPTCHA_SECRET_KEY",
    "hcaptcha_verify_api": "HCAPTCHA_VERIFY_API",
}


class ConfigurationError(RuntimeError):
    """Raised when required environment values are absent or unusable."""

    def __init__(self, missing_keys: List[str], message: Optional[str] = None):
        self.missing_keys = list(missing_keys)
        super().__init__(
            message
            or "Missing required configuration: " + ", ".join(self.missing_keys)
        )


class Settings(BaseModel):
    """Read-only configuration bundle shared by every request."""

    model_config = ConfigDict(frozen=True)

    max_upload_size_mb: float = 1.0
    file_upload_field_key: str = "file"

    hcaptcha_enabled: bool = False
    hcaptcha_secret_key: Optional[str] = None
    hcaptcha_verify_api: Optional[str] = None

    smtp_server: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: Optional[str] = None
    smtp_rcpt: Optional[str] = None
    smtp_subject: str = DEFAULT_SUBJECT
    smtp_use_tls: bool = True

    escape_html: bool = True
    cors_origins: List[str] = []
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_size_mb * 1024 * 1024)

    def missing_smtp_keys(self) -> List[str]:
        return [env for attr, env in _SMTP_KEYS.items() if not getattr(self, attr)]

    def missing_captcha_keys(self) -> List[str]:
        return [env for attr, env in _CAPTCHA_KEYS.items() if not getattr(self, attr)]

    def missing_keys(self) -> List[str]:
        """
        Return every required key that is absent.

        Captcha keys only count when the captcha feature flag is set.
        """
        missing = self.missing_smtp_keys()
        if self.hcaptcha_enabled:
            missing.extend(self.missing_captcha_keys())
        return missing

    def validate_required(self) -> None:
        """Raise a single ConfigurationError naming all missing keys."""
        missing = self.missing_keys()
        if missing:
            raise ConfigurationError(missing)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    # Anything other than an explicit false-like value enables the flag
    return raw.strip().lower() not in _FALSY


def _env_number(name: str, cast):
    raw = _env_str(name)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(
            [name], f"{name} must be a number, got {raw!r}"
        ) from None


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _parse_origins(raw: str) -> List[str]:
    """Split a comma-separated origin list, dropping blanks and duplicates."""
    seen: set = set()
    origins: List[str] = []
    for origin in raw.split(","):
        origin = origin.strip()
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)
    return origins


def load_settings() -> Settings:
    """Build a Settings bundle from the process environment."""
    load_dotenv()

    return Settings(
        max_upload_size_mb=_env_number("MAX_UPLOAD_SIZE_MB", float) or 1.0,
        file_upload_field_key=os.getenv("FILE_UPLOAD_FIELD_KEY") or "file",
        hcaptcha_enabled=_env_flag("HCAPTCHA_ENABLED", False),
        hcaptcha_secret_key=_env_str("HCAPTCHA_SECRET_KEY"),
        hcaptcha_verify_api=_env_str("HCAPTCHA_VERIFY_API"),
        smtp_server=_env_str("SMTP_SERVER"),
        smtp_port=_env_number("SMTP_PORT", int),
        smtp_username=_env_str("SMTP_USERNAME"),
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        smtp_from=_env_str("SMTP_FROM"),
        smtp_rcpt=_env_str("SMTP_RCPT"),
        smtp_subject=os.getenv("SMTP_SUBJECT") or DEFAULT_SUBJECT,
        smtp_use_tls=_env_flag("SMTP_USE_TLS", True),
        escape_html=_env_flag("FORM_ESCAPE_HTML", True),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """FastAPI dependency: the process-wide Settings instance."""
    return load_settings()
