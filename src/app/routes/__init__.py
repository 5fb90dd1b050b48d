"""
FastAPI Routes.

API 라우트 (REST, JSON)
"""

from . import build, sessions, spec

__all__ = ["build", "sessions", "spec"]
