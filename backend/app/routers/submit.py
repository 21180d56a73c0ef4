"""
Contact form submission router.

Endpoints:
  POST /submit   accept a form post (multipart or urlencoded) and relay it
                   by email

Flow: upload intake -> captcha check (when HCAPTCHA_ENABLED) -> HTML
formatting -> one SMTP send.

Responses use an ``{"error": ...}`` / ``{"success": true}`` body rather than
FastAPI's ``detail`` shape, because existing form front-ends read those keys.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import ConfigurationError, Settings, get_settings
from app.services.captcha import TOKEN_FIELD, verify_captcha
from app.services.mailer import build_envelope, send_mail
from app.services.upload_intake import UploadRejected, read_submission

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _relay_error_message(exc: Exception) -> str:
    # aiosmtplib errors carry the server reply in .message
    return getattr(exc, "message", None) or str(exc)


@router.post("/submit")
async def submit(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """
    Relay a contact form submission by email.

    Returns 200 ``{"success": true}`` once the relay accepts the message.
    Upload problems return 400/413, a failed captcha returns 400 and a relay
    failure returns 500 carrying the relay's error message. Configuration
    errors and captcha network failures are not caught.
    """
    try:
        submission = await read_submission(request, settings)
    except UploadRejected as e:
        return _error(e.status_code, e.message)

    if settings.hcaptcha_enabled:
        token = submission.fields.get(TOKEN_FIELD, "")
        if not await verify_captcha(token, settings):
            return _error(400, "Invalid captcha")

    envelope = build_envelope(submission, settings)

    try:
        await send_mail(envelope, settings)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"Failed to send contact form mail: {e}")
        return _error(500, _relay_error_message(e))

    return {"success": True}
