"""Shared test configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

# Ensure the project root is on sys.path so `book_catalog` resolves without an install
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from book_catalog.config import Settings  # noqa: E402
from book_catalog.context import AppContext  # noqa: E402
from book_catalog.database import create_engine  # noqa: E402
from book_catalog.main import create_app  # noqa: E402

SAMPLE_BOOKS = [
    {"id": 1, "title": "The Alchemist", "price": 1299, "genre": "Fiction"},
    {"id": 2, "title": "Dune", "price": 1899, "genre": "Science Fiction"},
    {"id": 3, "title": "Norwegian Wood", "price": 1499, "genre": "Fiction"},
    {"id": 4, "title": "Sapiens", "price": 2199, "genre": "Non-Fiction"},
    {"id": 5, "title": "The Hobbit", "price": 999, "genre": "Fantasy"},
    {"id": 6, "title": "Foundation", "price": 1099, "genre": "Science Fiction"},
    {"id": 7, "title": "Catch-22", "price": 1499, "genre": "Fiction"},
    {"id": 8, "title": "Educated", "price": 1799, "genre": "Memoir"},
    {"id": 9, "title": "Slaughterhouse-Five", "price": 899, "genre": "fiction"},
    {"id": 10, "title": "Dracula", "price": 799, "genre": "Horror"},
    {"id": 11, "title": "The Road", "price": 1399, "genre": "Fiction "},
    {"id": 12, "title": "Meditations", "price": 599, "genre": "Philosophy"},
]

BOOKS_DDL = "CREATE TABLE books (id INTEGER PRIMARY KEY, title TEXT, price INTEGER, genre TEXT)"


async def _insert_books(engine, rows: list[dict]) -> None:
    async with engine.begin() as conn:
        await conn.execute(
            text("INSERT INTO books (id, title, price, genre) VALUES (:id, :title, :price, :genre)"),
            rows,
        )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'books.db'}",
        environment="testing",
    )


@pytest_asyncio.fixture
async def engine(settings):
    """Engine over an empty `books` table in a throwaway SQLite file."""
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.execute(text(BOOKS_DDL))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(engine):
    await _insert_books(engine, SAMPLE_BOOKS)
    return engine


@pytest_asyncio.fixture
async def client(settings, engine):
    """Create a test client for the FastAPI app bound to the test engine."""
    app = create_app(context=AppContext(settings=settings, engine=engine))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_books() -> list[dict]:
    return SAMPLE_BOOKS


@pytest.fixture
def insert_books():
    """Coroutine function inserting row dicts into the `books` table of an engine."""
    return _insert_books
