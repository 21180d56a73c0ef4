"""
Render submitted form fields as an HTML email body.

Every field becomes a labelled line, except the reserved ``message`` field
which is appended unlabelled after a blank line:

    <b>Name</b>: Alice<br>
    <b>Email</b>: a@example.com<br>
    <br><br>Hello there

Keys and values are HTML-escaped unless the caller opts out
(FORM_ESCAPE_HTML=false), in which case they are interpolated verbatim.
"""

import html
from typing import Mapping

MESSAGE_FIELD = "message"


def capitalize_key(key: str) -> str:
    """Uppercase the first character only; the rest is left untouched."""
    return key[:1].upper() + key[1:]


def format_field(key: str, value: str, escape: bool = True) -> str:
    if escape:
        value = html.escape(value)
    if key == MESSAGE_FIELD:
        return f"<br><br>{value}"
    label = capitalize_key(key)
    if escape:
        label = html.escape(label)
    return f"<b>{label}</b>: {value}<br>"


def format_message_html(fields: Mapping[str, str], escape: bool = True) -> str:
    """
    Build the HTML body for a submission.

    Output depends only on ``fields`` (in iteration order) and ``escape``.
    """
    return "\n".join(
        format_field(key, value, escape=escape) for key, value in fields.items()
    )
