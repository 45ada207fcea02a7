"""Process-wide application context for the FastAPI layer."""

from staffdir.common.config import get_settings
from staffdir.common.context import AppContext, build_context
from staffdir.common.database import DatabaseManager

_context: AppContext | None = None


def get_context() -> AppContext:
    global _context
    if _context is None:
        _context = build_context(get_settings())
    return _context


def set_context(context: AppContext) -> None:
    """Install a pre-built context (tests, embedding applications)."""
    global _context
    _context = context


def get_db() -> DatabaseManager:
    return get_context().db


def reset_context() -> None:
    """Drop the context (for testing)."""
    global _context
    _context = None
