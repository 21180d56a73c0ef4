"""
Outbound mail service.

Turns a Submission into a MailEnvelope, renders it as a MIME message and
submits it to the configured SMTP relay with aiosmtplib. Exactly one send
attempt is made; relay errors are left for the caller to report.
"""

import logging
import re
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from app.config import ConfigurationError, Settings
from app.models.submission import MailAttachment, MailEnvelope, Submission
from app.services.message_formatter import format_message_html

logger = logging.getLogger(__name__)

DEFAULT_FROM_NAME = "Contact Form"

_LINE_BREAKS = re.compile(r"[\r\n]+")


def _single_line(value: str) -> str:
    """Collapse CR/LF runs to one space so a value is safe in a header."""
    return _LINE_BREAKS.sub(" ", value).strip()


def build_envelope(submission: Submission, settings: Settings) -> MailEnvelope:
    """
    Derive the outbound envelope for a submission.

    The display name comes from the ``name`` field and the Reply-To from the
    ``email`` field; both fall back to fixed values when the field is absent
    or empty. Line breaks in either field are collapsed to spaces.
    """
    from_name = _single_line(submission.get("name") or "") or DEFAULT_FROM_NAME
    reply_to = _single_line(submission.get("email") or "") or settings.smtp_from

    attachments = []
    if submission.file is not None:
        attachments.append(
            MailAttachment(
                filename=submission.file.filename,
                content=submission.file.content,
                content_type=submission.file.content_type,
            )
        )

    return MailEnvelope(
        from_name=from_name,
        from_address=settings.smtp_from or "",
        reply_to=reply_to or "",
        to=settings.smtp_rcpt or "",
        subject=settings.smtp_subject,
        html=format_message_html(submission.fields, escape=settings.escape_html),
        attachments=attachments,
    )


def _split_content_type(content_type: str) -> tuple[str, str]:
    maintype, _, subtype = content_type.partition("/")
    if not maintype or not subtype:
        return "application", "octet-stream"
    return maintype, subtype.split(";")[0].strip()


def build_message(envelope: MailEnvelope) -> EmailMessage:
    """Render an envelope as an HTML email with at most one attachment."""
    msg = EmailMessage()
    msg["From"] = formataddr((envelope.from_name, envelope.from_address))
    msg["To"] = envelope.to
    msg["Subject"] = envelope.subject
    msg["Reply-To"] = formataddr((envelope.from_name, envelope.reply_to))
    msg.set_content(envelope.html, subtype="html")

    for attachment in envelope.attachments:
        maintype, subtype = _split_content_type(attachment.content_type)
        msg.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )

    return msg


async def send_mail(envelope: MailEnvelope, settings: Settings) -> None:
    """
    Submit the envelope to the SMTP relay.

    Raises:
        ConfigurationError: a required SMTP setting is missing. Raised before
            any network call.
        aiosmtplib.SMTPException / OSError: the relay rejected the message or
            could not be reached. Not retried.
    """
    missing = settings.missing_smtp_keys()
    if missing:
        raise ConfigurationError(missing)

    message = build_message(envelope)

    await aiosmtplib.send(
        message,
        hostname=settings.smtp_server,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )

    logger.info(
        "Contact form mail sent to %s (%d attachment(s))",
        envelope.to,
        len(envelope.attachments),
    )
