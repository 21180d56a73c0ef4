"""
Contact form submission and outbound mail envelope models.

A Submission lives for one request only. The MailEnvelope is derived from it
(plus settings) by the mailer service and is never cached between requests.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel


class UploadedFile(BaseModel):
    """The single optional upload, buffered in memory."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class Submission(BaseModel):
    """
    One form post: text fields in arrival order plus an optional file.

    ``fields`` keeps insertion order, which is the order the formatter
    renders them in.
    """

    fields: Dict[str, str] = {}
    file: Optional[UploadedFile] = None

    def get(self, key: str) -> Optional[str]:
        """Return the field value, treating empty strings as absent."""
        value = self.fields.get(key)
        return value or None


class MailAttachment(BaseModel):
    filename: str
    content: bytes
    content_type: str


class MailEnvelope(BaseModel):
    """Fully-assembled message handed to the SMTP relay."""

    from_name: str
    from_address: str
    reply_to: str
    to: str
    subject: str
    html: str
    attachments: List[MailAttachment] = []
