"""
Utility functions for Proofdesk.

Includes console logging and small text helpers shared by the CLI and server.
"""

import re
from datetime import datetime
from typing import Optional, Tuple

# Console colors
C_RESET = "\033[0m"
C_BOLD = "\033[1m"
C_DIM = "\033[2m"
C_RED = "\033[91m"
C_GREEN = "\033[92m"
C_YELLOW = "\033[93m"
C_CYAN = "\033[96m"
C_MAGENTA = "\033[95m"

# Log level styles
LOG_STYLES = {
    "INFO": (C_DIM, "›"),
    "OK": (C_GREEN, "✓"),
    "WARN": (C_YELLOW, "⚠"),
    "ERR": (C_RED, "✗"),
    "AI": (C_MAGENTA, "✦"),
    "APP": (C_CYAN, "◆"),
}

# Timeout values (seconds)
SERVICE_CHECK_TIMEOUT = 2

# Display truncation
LOG_TRUNCATE = 60
PREVIEW_TRUNCATE = 70

SUBJECT_RE = re.compile(r"^Subject:\s*(.+)\n", re.IGNORECASE)


def log(msg: str, level: str = "INFO"):
    """Print a timestamped, colored log message."""
    ts = datetime.now().strftime("%H:%M:%S")
    color, sym = LOG_STYLES.get(level, (C_DIM, "›"))
    print(f"  {C_DIM}{ts}{C_RESET}  {color}{sym}{C_RESET}  {msg}", flush=True)


def truncate(text: str, length: int = LOG_TRUNCATE) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) > length:
        return text[:length] + "..."
    return text


def preview(text: str, length: int = PREVIEW_TRUNCATE) -> str:
    """Single-line preview of a multi-line text for log output."""
    return truncate(" ".join(text.split()), length)


def split_subject(markdown: str) -> Tuple[Optional[str], str]:
    """
    Split a leading "Subject: ..." line off an email-mode result.

    Returns (subject, body). subject is None when the text has no subject
    line; the single blank line after the subject is dropped from the body.
    """
    match = SUBJECT_RE.match(markdown)
    if not match:
        return None, markdown
    body = markdown[match.end():]
    if body.startswith("\n"):
        body = body[1:]
    return match.group(1).strip(), body
