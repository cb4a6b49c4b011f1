"""Explicit application context shared by request handlers."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from book_catalog.config import Settings


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    engine: AsyncEngine


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context attached to the running app."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("application context is not initialised")
    return context
