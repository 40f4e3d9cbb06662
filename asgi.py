"""
asgi.py -- ASGI entry point for ProjectDesk.

Run with:  uvicorn asgi:app --reload
           uvicorn asgi:app --workers 1

Rate-limit counters live in process memory (api/limiter.py). With several
workers each one keeps its own table, so the effective quota multiplies by
the worker count.
"""

from api.main import app

__all__ = ["app"]
