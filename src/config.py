#!/usr/bin/env python3
"""
Configuration constants for the journal service.

This module centralizes paths, editorial workflow windows, draft editing
parameters and server settings. Every constant can be overridden with an
environment variable carrying the ``JOURNAL_`` prefix, e.g.
``JOURNAL_AUTOSAVE_DEBOUNCE_MS=250``.

Usage
-----
    from config import PROJECT_ROOT, DATA_DIR, AUTOSAVE_DEBOUNCE_MS

    # Or import specific sections
    from config import (
        # Paths
        PROJECT_ROOT,
        DATA_DIR,
        SNAPSHOT_PATH,

        # Draft editing
        AUTOSAVE_DEBOUNCE_MS,
        REVIEW_EDIT_WINDOW_SECONDS,

        # Abstracts
        ABSTRACT_MIN_WORDS,
        ABSTRACT_MAX_WORDS,
    )
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional


ENV_PREFIX = 'JOURNAL_'


def _env(name: str, default):
    """Read ``JOURNAL_<name>`` from the environment, coerced to the default's type."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    if isinstance(default, bool):
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, Path):
        return Path(raw)
    return raw


# =============================================================================
# PATHS
# =============================================================================

def _find_project_root() -> Path:
    """Find project root by looking for characteristic files."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'src').exists() and (parent / 'pyproject.toml').exists():
            return parent
    # Fallback: use parent of src/
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = _find_project_root()

# Data directories
DATA_DIR = _env('DATA_DIR', PROJECT_ROOT / 'data_work')
SNAPSHOT_PATH = DATA_DIR / 'journal.json'

# Optional YAML overrides for a running instance
JOURNAL_CONFIG_PATH = _env('CONFIG_PATH', PROJECT_ROOT / 'journal.yml')


# Name used in author-facing notifications
JOURNAL_NAME = _env('NAME', 'Alignment Journal')


# =============================================================================
# STORAGE
# =============================================================================

# Write a JSON snapshot of the store after each mutation
PERSIST_SNAPSHOTS = _env('PERSIST_SNAPSHOTS', False)


# =============================================================================
# DRAFT EDITING (reviews and reviewer abstracts)
# =============================================================================

# Delay after the last keystroke before an autosave fires
AUTOSAVE_DEBOUNCE_MS = _env('AUTOSAVE_DEBOUNCE_MS', 500)

# Reviews stay editable for this long after submission, then lock
REVIEW_EDIT_WINDOW_SECONDS = _env('REVIEW_EDIT_WINDOW_SECONDS', 15 * 60)

# Sections of a structured review, in display order
REVIEW_SECTIONS = ('summary', 'strengths', 'weaknesses', 'questions', 'recommendation')

# A review section counts as complete at this many words
SECTION_COMPLETE_WORDS = _env('SECTION_COMPLETE_WORDS', 10)

# Period of the background sweep that locks expired reviews
LOCK_SWEEP_INTERVAL_SECONDS = _env('LOCK_SWEEP_INTERVAL_SECONDS', 30)


# =============================================================================
# ABSTRACTS
# =============================================================================

ABSTRACT_MIN_WORDS = _env('ABSTRACT_MIN_WORDS', 150)
ABSTRACT_MAX_WORDS = _env('ABSTRACT_MAX_WORDS', 500)
ABSTRACT_MAX_CHARS = _env('ABSTRACT_MAX_CHARS', 5000)


# =============================================================================
# EDITORIAL DECISIONS
# =============================================================================

DECISION_NOTE_MAX_LENGTH = _env('DECISION_NOTE_MAX_LENGTH', 2000)

# Grace period during which an editor may undo a decision
DECISION_UNDO_WINDOW_SECONDS = _env('DECISION_UNDO_WINDOW_SECONDS', 10)


# =============================================================================
# DISCUSSIONS
# =============================================================================

# Authors of a discussion message may edit it for this long after posting
DISCUSSION_EDIT_WINDOW_SECONDS = _env('DISCUSSION_EDIT_WINDOW_SECONDS', 5 * 60)
DISCUSSION_MAX_CHARS = _env('DISCUSSION_MAX_CHARS', 5000)


# =============================================================================
# SUBMISSION CONSTRAINTS
# =============================================================================

TITLE_MIN_CHARS = 10
TITLE_MAX_CHARS = 300
SUBMISSION_ABSTRACT_MIN_CHARS = 100
SUBMISSION_ABSTRACT_MAX_CHARS = 5000
MAX_KEYWORDS = 10
KEYWORD_MIN_CHARS = 2
KEYWORD_MAX_CHARS = 50
PDF_MAX_BYTES = 50 * 1024 * 1024


# =============================================================================
# DEMO / DEVELOPMENT
# =============================================================================

# Enables self-assigning as reviewer and lets admins act as reviewers
DEMO_ROLE_SWITCHER = _env('DEMO_ROLE_SWITCHER', False)


# =============================================================================
# SERVER
# =============================================================================

WS_POLL_INTERVAL_SECONDS = _env('WS_POLL_INTERVAL_SECONDS', 1.0)
LOG_LEVEL = _env('LOG_LEVEL', 'INFO')


# =============================================================================
# RUNTIME SETTINGS
# =============================================================================

@dataclass
class JournalSettings:
    """Settings used by a running app instance."""
    autosave_debounce_ms: int = AUTOSAVE_DEBOUNCE_MS
    review_edit_window_seconds: int = REVIEW_EDIT_WINDOW_SECONDS
    section_complete_words: int = SECTION_COMPLETE_WORDS
    lock_sweep_interval_seconds: int = LOCK_SWEEP_INTERVAL_SECONDS
    abstract_min_words: int = ABSTRACT_MIN_WORDS
    abstract_max_words: int = ABSTRACT_MAX_WORDS
    abstract_max_chars: int = ABSTRACT_MAX_CHARS
    decision_note_max_length: int = DECISION_NOTE_MAX_LENGTH
    decision_undo_window_seconds: int = DECISION_UNDO_WINDOW_SECONDS
    discussion_edit_window_seconds: int = DISCUSSION_EDIT_WINDOW_SECONDS
    discussion_max_chars: int = DISCUSSION_MAX_CHARS
    demo_role_switcher: bool = DEMO_ROLE_SWITCHER
    persist_snapshots: bool = PERSIST_SNAPSHOTS
    snapshot_path: Path = SNAPSHOT_PATH
    ws_poll_interval_seconds: float = WS_POLL_INTERVAL_SECONDS

    def to_dict(self) -> dict:
        data = asdict(self)
        data['snapshot_path'] = str(self.snapshot_path)
        return data


def load_journal_config(path: Optional[Path] = None) -> JournalSettings:
    """
    Load runtime settings, applying overrides from a YAML file.

    Parameters
    ----------
    path : Path, optional
        YAML file. Defaults to JOURNAL_CONFIG_PATH. A missing file yields
        the module defaults.

    Returns
    -------
    JournalSettings
        Settings with file overrides applied

    Raises
    ------
    ValueError
        If the file contains keys that are not settings
    """
    import yaml

    settings = JournalSettings()
    config_path = Path(path) if path is not None else JOURNAL_CONFIG_PATH
    if not config_path.exists():
        return settings

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    known = {f.name for f in fields(JournalSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings in {config_path}: {', '.join(unknown)}")

    for key, value in data.items():
        if key == 'snapshot_path':
            value = Path(value)
        setattr(settings, key, value)
    return settings


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config(settings: Optional[JournalSettings] = None) -> list[str]:
    """
    Validate configuration settings.

    Returns
    -------
    list[str]
        Problems found; empty when the configuration is usable
    """
    settings = settings or JournalSettings()
    errors = []

    if settings.abstract_min_words > settings.abstract_max_words:
        errors.append(
            f"abstract_min_words ({settings.abstract_min_words}) exceeds "
            f"abstract_max_words ({settings.abstract_max_words})"
        )

    for name in (
        'autosave_debounce_ms',
        'review_edit_window_seconds',
        'lock_sweep_interval_seconds',
        'decision_undo_window_seconds',
        'discussion_edit_window_seconds',
        'discussion_max_chars',
        'abstract_max_chars',
    ):
        if getattr(settings, name) <= 0:
            errors.append(f"{name} must be positive: {getattr(settings, name)}")

    if settings.ws_poll_interval_seconds <= 0:
        errors.append(f"ws_poll_interval_seconds must be positive: {settings.ws_poll_interval_seconds}")

    return errors


def ensure_directories() -> None:
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
