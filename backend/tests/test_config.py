"""
Configuration loading and validation tests.

load_dotenv is patched out so a developer's local .env never leaks in.
"""

import pytest
from unittest.mock import patch
from pydantic import ValidationError

from app.config import ConfigurationError, Settings, load_settings


_FULL_ENV = {
    "SMTP_SERVER": "smtp.example.com",
    "SMTP_PORT": "465",
    "SMTP_USERNAME": "relay-user",
    "SMTP_PASSWORD": "relay-pass",
    "SMTP_FROM": "noreply@example.com",
    "SMTP_RCPT": "inbox@example.com",
}


def _load(env: dict) -> Settings:
    with patch.dict("os.environ", env, clear=True), \
         patch("app.config.load_dotenv"):
        return load_settings()


class TestLoadSettings:

    def test_defaults(self):
        settings = _load({})

        assert settings.max_upload_size_mb == 1.0
        assert settings.max_upload_bytes == 1024 * 1024
        assert settings.file_upload_field_key == "file"
        assert settings.hcaptcha_enabled is False
        assert settings.smtp_subject == "Contact Form Submission"
        assert settings.smtp_use_tls is True
        assert settings.escape_html is True
        assert settings.cors_origins == []
        assert settings.log_level == "INFO"

    def test_reads_smtp_settings(self):
        settings = _load({**_FULL_ENV, "SMTP_SUBJECT": "Website enquiry"})

        assert settings.smtp_server == "smtp.example.com"
        assert settings.smtp_port == 465
        assert settings.smtp_username == "relay-user"
        assert settings.smtp_password == "relay-pass"
        assert settings.smtp_from == "noreply@example.com"
        assert settings.smtp_rcpt == "inbox@example.com"
        assert settings.smtp_subject == "Website enquiry"

    def test_fractional_upload_limit(self):
        settings = _load({"MAX_UPLOAD_SIZE_MB": "2.5"})
        assert settings.max_upload_bytes == int(2.5 * 1024 * 1024)

    def test_custom_upload_field_key(self):
        settings = _load({"FILE_UPLOAD_FIELD_KEY": "attachment"})
        assert settings.file_upload_field_key == "attachment"

    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", "yes", "on", "enabled", "y", "TRUE "])
    def test_truthy_captcha_flag(self, raw):
        assert _load({"HCAPTCHA_ENABLED": raw}).hcaptcha_enabled is True

    @pytest.mark.parametrize("raw", ["0", "false", "no", "off", ""])
    def test_falsy_captcha_flag(self, raw):
        assert _load({"HCAPTCHA_ENABLED": raw}).hcaptcha_enabled is False

    def test_escape_html_opt_out(self):
        assert _load({"FORM_ESCAPE_HTML": "false"}).escape_html is False

    def test_unrecognised_flag_values_do_not_disable_defaults(self):
        settings = _load({"FORM_ESCAPE_HTML": "always", "SMTP_USE_TLS": "required"})
        assert settings.escape_html is True
        assert settings.smtp_use_tls is True

    @pytest.mark.parametrize("env_key, raw", [
        ("SMTP_PORT", "abc"),
        ("MAX_UPLOAD_SIZE_MB", "big"),
    ])
    def test_non_numeric_value_names_the_key(self, env_key, raw):
        with pytest.raises(ConfigurationError) as exc_info:
            _load({**_FULL_ENV, env_key: raw})

        assert exc_info.value.missing_keys == [env_key]
        assert env_key in str(exc_info.value)

    def test_cors_origins_split_and_deduplicated(self):
        settings = _load({
            "CORS_ORIGINS": "https://a.example, https://b.example,,https://a.example"
        })
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_blank_values_count_as_missing(self):
        settings = _load({**_FULL_ENV, "SMTP_SERVER": "   "})
        assert settings.smtp_server is None


class TestSettingsValidation:

    def test_complete_settings_pass(self):
        settings = _load(_FULL_ENV)
        assert settings.missing_keys() == []
        settings.validate_required()

    def test_all_missing_smtp_keys_reported_together(self):
        settings = _load({})

        with pytest.raises(ConfigurationError) as exc_info:
            settings.validate_required()

        assert exc_info.value.missing_keys == [
            "SMTP_SERVER",
            "SMTP_PORT",
            "SMTP_USERNAME",
            "SMTP_PASSWORD",
            "SMTP_FROM",
            "SMTP_RCPT",
        ]
        assert "SMTP_SERVER" in str(exc_info.value)
        assert "SMTP_RCPT" in str(exc_info.value)

    def test_each_smtp_key_is_independently_required(self):
        for env_key in _FULL_ENV:
            env = {k: v for k, v in _FULL_ENV.items() if k != env_key}
            assert _load(env).missing_keys() == [env_key]

    def test_captcha_keys_ignored_when_disabled(self):
        assert _load(_FULL_ENV).missing_keys() == []

    def test_captcha_keys_required_when_enabled(self):
        settings = _load({**_FULL_ENV, "HCAPTCHA_ENABLED": "true"})
        assert settings.missing_keys() == ["HCAPTCHA_SECRET_KEY", "HCAPTCHA_VERIFY_API"]

    def test_settings_are_frozen(self):
        settings = _load(_FULL_ENV)
        with pytest.raises(ValidationError):
            settings.smtp_server = "other.example.com"
