"""
Read a contact form request into a Submission.

Text fields are collected in arrival order. At most one file is accepted,
under the configured field key, and it must fit within the configured size.
File bytes are held in memory for the lifetime of the request only: the body
is capped while it streams in and file parts are never spooled to disk.
"""

import logging
from typing import AsyncGenerator, Dict, List, Optional

from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser
from starlette.requests import Request

from app.config import Settings
from app.models.submission import Submission, UploadedFile

logger = logging.getLogger(__name__)

# Room for multipart boundaries, part headers and the text fields
BODY_OVERHEAD_BYTES = 256 * 1024


class UploadRejected(Exception):
    """The request's upload cannot be accepted."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def _is_empty_part(upload: UploadFile) -> bool:
    # Browsers send an unnamed zero-byte part for an untouched file input
    return not upload.filename and not upload.size


async def _read_upload(upload: UploadFile, max_bytes: int) -> UploadedFile:
    """Buffer one upload, rejecting it when it exceeds ``max_bytes``."""
    if upload.size is not None and upload.size > max_bytes:
        raise UploadRejected(413, "File too large")

    content = await upload.read()

    # Double-check after reading in case .size was not set
    if len(content) > max_bytes:
        raise UploadRejected(413, "File too large")

    return UploadedFile(
        filename=upload.filename or "attachment",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


def collect_fields(items) -> Dict[str, str]:
    """
    Fold (key, value) text pairs into an ordered mapping.

    A key that repeats keeps its first position; its values are joined with
    commas.
    """
    values: Dict[str, List[str]] = {}
    for key, value in items:
        values.setdefault(key, []).append(value)
    return {key: ",".join(parts) for key, parts in values.items()}


class _InMemoryMultiPartParser(MultiPartParser):
    """Multipart parser whose file parts stay in memory up to ``spool_max_size``."""

    def __init__(self, headers, stream, spool_max_size: int):
        super().__init__(headers, stream)
        self.spool_max_size = spool_max_size


async def _limited_stream(request: Request, limit: int) -> AsyncGenerator[bytes, None]:
    """Yield the request body, aborting as soon as it grows past ``limit``."""
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise UploadRejected(413, "File too large")
        yield chunk


def _check_content_length(request: Request, limit: int) -> None:
    raw = request.headers.get("content-length")
    if raw and raw.isdigit() and int(raw) > limit:
        raise UploadRejected(413, "File too large")


async def _parse_form(request: Request, settings: Settings) -> FormData:
    """
    Parse the body without ever holding more than the upload limit plus
    framing overhead, and without spooling file parts to disk.
    """
    body_limit = settings.max_upload_bytes + BODY_OVERHEAD_BYTES
    _check_content_length(request, body_limit)

    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("multipart/form-data"):
        return await request.form()

    parser = _InMemoryMultiPartParser(
        request.headers,
        _limited_stream(request, body_limit),
        spool_max_size=body_limit,
    )
    try:
        return await parser.parse()
    except MultiPartException as e:
        raise UploadRejected(400, e.message)


async def read_submission(request: Request, settings: Settings) -> Submission:
    """
    Parse the request body into a Submission.

    Raises:
        UploadRejected: 413 when the body or file is larger than the configured
            limit (checked against Content-Length first, then while streaming),
            400 when more than one file is sent under the upload key, a file
            arrives under any other field, or the multipart body is malformed.
    """
    field_key = settings.file_upload_field_key
    text_items = []
    uploads: List[UploadFile] = []

    try:
        form = await _parse_form(request, settings)
    except UploadRejected as e:
        logger.warning(f"Upload rejected ({e.status_code}): {e.message}")
        raise

    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if _is_empty_part(value):
                    continue
                if key != field_key:
                    raise UploadRejected(400, f"Unexpected file field: {key}")
                uploads.append(value)
            else:
                text_items.append((key, value))

        if len(uploads) > 1:
            raise UploadRejected(400, "Only one file may be uploaded")

        file: Optional[UploadedFile] = None
        if uploads:
            file = await _read_upload(uploads[0], settings.max_upload_bytes)
    except UploadRejected as e:
        logger.warning(f"Upload rejected ({e.status_code}): {e.message}")
        raise
    finally:
        await form.close()

    return Submission(fields=collect_fields(text_items), file=file)
