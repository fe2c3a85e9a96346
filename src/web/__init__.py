"""
Journal web service.

This package provides the FastAPI application behind the journal: the
editorial workflow (submissions, reviews, decisions, publication) and the
server half of collaborative draft editing.

Usage
-----
    python src/manage.py serve
    # or
    uvicorn web.app:app --reload --port 8000   (from src/)
"""
from .app import create_app

__all__ = ['create_app']
