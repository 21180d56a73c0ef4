#!/usr/bin/env python3
"""
Dev helper: post a test contact form submission to a running relay.

Builds a form post with name/email/message fields, optionally
attaches a file, and POST-s it to the /submit endpoint.

Usage
-----
# Basic: sample fields, no attachment, targeting localhost:8000
python scripts/send_test_submission.py

# Attach a file
python scripts/send_test_submission.py --file path/to/cv.pdf

# Extra fields are passed as key=value pairs, in order
python scripts/send_test_submission.py --field company=Acme --field phone=555-0100

# Pass a captcha token when HCAPTCHA_ENABLED is set on the server
python scripts/send_test_submission.py --captcha-token 10000000-aaaa-bbbb-cccc-000000000001

# Target a different backend URL
python scripts/send_test_submission.py --url http://staging.example.com
"""

import argparse
import json
import mimetypes
import sys
import textwrap
from pathlib import Path

import httpx

_CAPTCHA_FIELD = "h-captcha-response"


def _parse_field(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    return key, value


def _detect_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def _print_response(response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        body = response.json()
        print(json.dumps(body, indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Send a test contact form submission to the relay.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --file notes.txt
              python scripts/send_test_submission.py --field company=Acme
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--name", default="Test User", help='Sender name (default: "Test User")')
    parser.add_argument(
        "--email",
        default="test@example.com",
        help="Sender email, used as Reply-To (default: test@example.com)",
    )
    parser.add_argument(
        "--message",
        default="This is a test submission.",
        help="Message body",
    )
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        type=_parse_field,
        default=[],
        metavar="KEY=VALUE",
        help="Additional form field (repeatable)",
    )
    parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="Path to a file to attach.",
    )
    parser.add_argument(
        "--file-field",
        default="file",
        help="Form field name for the upload (default: file)",
    )
    parser.add_argument(
        "--captcha-token",
        default=None,
        metavar="TOKEN",
        help=f"Value sent as {_CAPTCHA_FIELD}",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the form fields without sending them.",
    )

    args = parser.parse_args()

    data = [("name", args.name), ("email", args.email)]
    data.extend(args.fields)
    data.append(("message", args.message))
    if args.captcha_token:
        data.append((_CAPTCHA_FIELD, args.captcha_token))

    files = None
    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        file_content = file_path.read_bytes()
        files = {
            args.file_field: (
                file_path.name,
                file_content,
                _detect_content_type(file_path.name),
            )
        }
        print(f"Attaching file: {file_path} ({len(file_content):,} bytes)")

    endpoint = f"{args.url.rstrip('/')}/submit"
    print(f"Endpoint  : {endpoint}")
    for key, value in data:
        print(f"{key:<10}: {value}")

    if args.dry_run:
        print("\n[DRY RUN] Nothing sent.")
        return 0

    try:
        response = httpx.post(endpoint, data=dict(data), files=files, timeout=30)
        _print_response(response)
        return 0 if response.status_code == 200 else 1
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
