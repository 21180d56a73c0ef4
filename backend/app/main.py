"""
Contact Form Relay API
FastAPI application that relays contact form submissions by email.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import submit

settings = get_settings()

# Configure logging to output to console
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Contact Form Relay",
    description="Relays contact form submissions to a fixed mailbox via SMTP",
    version="0.1.0",
)

# CORS origins come from CORS_ORIGINS; none means same-origin only
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["POST"],
    allow_headers=["*"],
)

app.include_router(submit.router, tags=["submit"])


@app.on_event("startup")
async def check_configuration() -> None:
    """
    Fail fast when required configuration is missing.

    Every missing key is reported at once, so a deployment can be fixed in a
    single pass instead of one failing request at a time.
    """
    get_settings().validate_required()

    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(
        "Contact form relay running at http://localhost:%s (captcha %s)",
        host_port,
        "enabled" if get_settings().hcaptcha_enabled else "disabled",
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
