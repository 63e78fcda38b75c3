"""
BACKEND PACKAGE

Application session (event handlers around the token collection) and the
Flask HTTP API built on it.
"""

from .app import build_session, create_app
from .session import Session

__all__ = ["Session", "build_session", "create_app"]
