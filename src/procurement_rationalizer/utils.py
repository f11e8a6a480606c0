"""Shared helpers — hashing, timestamps, word casing."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def capitalize_words(text: str) -> str:
    """Upper-case the first letter of each whitespace token, keep the rest."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split())


def title_words(text: str) -> str:
    """Title-case the first letter of each space-separated token (ß -> Ss), lower the rest."""
    return " ".join(word.capitalize() for word in text.split(" "))
