"""
Utilities package.

Provides shared utilities for the journal service:
- helpers: Common utility functions (ids, clocks, word counts)
- log: Logging configuration and logger access
- log_tags: Subsystem tags for log messages
"""
from .helpers import count_words, format_countdown, new_id, utc_now
from .log import configure_logging, get_logger
