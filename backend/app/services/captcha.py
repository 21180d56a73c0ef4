"""
hCaptcha verification service.

Posts the client's ``h-captcha-response`` token together with the server-held
secret to the configured verify endpoint and reports whether the endpoint
answered ``{"success": true}``.

Network errors and non-JSON responses are not caught here; they propagate to
the framework and surface as a 500.
"""

import logging

import httpx

from app.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

TOKEN_FIELD = "h-captcha-response"


async def verify_captcha(token: str, settings: Settings) -> bool:
    """
    Exchange a captcha token with the verify endpoint.

    Args:
        token:    The client-supplied response token (may be empty).
        settings: Settings carrying the secret key and endpoint URL.

    Returns:
        True only when the endpoint reports success.

    Raises:
        ConfigurationError: secret key or endpoint URL is missing. Raised
            before any network call.
    """
    missing = settings.missing_captcha_keys()
    if missing:
        raise ConfigurationError(missing)

    async with httpx.AsyncClient() as client:
        response = await client.post(
            settings.hcaptcha_verify_api,
            data={"secret": settings.hcaptcha_secret_key, "response": token},
        )
        result = response.json()

    success = result.get("success") is True
    if not success:
        logger.warning(
            "Captcha verification failed: %s", result.get("error-codes", [])
        )
    return success
