"""
Web-specific configuration.

Extends the main config.py with settings specific to the HTTP server.
"""
from pathlib import Path

# Import main project config
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import PROJECT_ROOT, LOG_LEVEL, _env

# Server settings
WEB_HOST = _env('HOST', '127.0.0.1')
WEB_PORT = _env('PORT', 8000)
WEB_DEBUG = _env('DEBUG', False)

API_VERSION = "0.1.0"

# Header carrying the caller's user id
USER_HEADER = "X-User-Id"

WEB_DIR = Path(__file__).parent

# Re-export main config items for convenience
__all__ = [
    'WEB_HOST',
    'WEB_PORT',
    'WEB_DEBUG',
    'API_VERSION',
    'USER_HEADER',
    'WEB_DIR',
    'PROJECT_ROOT',
    'LOG_LEVEL',
]
