#!/usr/bin/env python3
"""
Common utility functions for the journal service.

This module provides shared helper functions used by the services and the
draft editing client.
"""
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from pathlib import Path


_WHITESPACE = re.compile(r'\s+')


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Short random record identifier."""
    return uuid.uuid4().hex[:16]


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len([w for w in _WHITESPACE.split(text.strip()) if w])


def is_blank(text) -> bool:
    """True for None or whitespace-only strings."""
    return text is None or not text.strip()


def truncate(text: str, limit: int) -> str:
    """Cut text to at most ``limit`` characters."""
    return text if len(text) <= limit else text[:limit]


def format_countdown(seconds: float) -> str:
    """Format remaining seconds as MM:SS, rounding partial seconds up."""
    total = max(0, int(-(-seconds // 1)))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"
