"""
Strip session/bot identifiers from free-text log lines before they reach the user.
"""
# core/sanitizer.py
from __future__ import annotations
from typing import Optional
import re

ID_FIELD_RE = re.compile(r"(?:session_id|bot_id)[:\s]+[\w-]+", re.IGNORECASE)
SESSION_CREATED_RE = re.compile(r"Session created[:\s]+[\w-]+", re.IGNORECASE)
BRACKETED_UUID_RE = re.compile(r"\[[\w-]{36}\]")

# substring -> coarse status label
STATUS_MARKERS = (
    ("Bot joined", "Recording active"),
    ("Recording started", "Recording in progress"),
)


def _scrub(text: str) -> str:
    text = ID_FIELD_RE.sub("", text)
    text = SESSION_CREATED_RE.sub("Session created", text)
    return BRACKETED_UUID_RE.sub("", text)


def sanitize(raw) -> str:
    """
    Remove identifying tokens from a log message and trim it.

    Substitutions repeat until the text stops changing, so a sanitized line
    is a fixed point. An empty result means the line carried nothing but ids.
    """
    text = "" if raw is None else str(raw)
    while True:
        cleaned = _scrub(text)
        if cleaned == text:
            return cleaned.strip()
        text = cleaned


def derive_status(message: str) -> Optional[str]:
    for marker, status in STATUS_MARKERS:
        if marker in message:
            return status
    return None
