"""
Books listing query.

Turns untrusted query-string values into a validated ``ListBooksParams``,
builds the parameterized SELECT for them and maps the buffered rows to
``Book`` records. Every call that reaches the database logs the final SQL,
the bound arguments and the elapsed time, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import re
import time
from contextlib import AsyncExitStack
from typing import Any, Mapping, Optional

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from book_catalog.errors import (
    InvalidParameter,
    QueryCancelledError,
    QueryExecutionError,
    ResultDecodeError,
)
from book_catalog.metrics import BOOKS_QUERY_LATENCY
from book_catalog.schemas.book import Book, BookPage, ListBooksParams, SortOrder
from book_catalog.services.sql_builder import RenderedQuery, SelectBuilder

logger = structlog.get_logger()

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

BOOKS_TABLE = "books"
BOOK_COLUMNS = ["id", "title", "price", "genre"]

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1


def _int_param(raw: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    value = (raw.get(name) or "").strip()
    if not value:
        return default
    if not _INTEGER.fullmatch(value):
        raise InvalidParameter(name)
    number = int(value)
    if number < minimum or number > _INT64_MAX:
        raise InvalidParameter(name)
    return number


def parse_list_params(raw: Mapping[str, str]) -> ListBooksParams:
    """Validate limit, offset, genre and sort in that order; the first bad one raises."""
    limit = min(_int_param(raw, "limit", DEFAULT_LIMIT, minimum=1), MAX_LIMIT)
    offset = _int_param(raw, "offset", 0, minimum=0)
    genre = (raw.get("genre") or "").strip() or None

    try:
        sort = SortOrder((raw.get("sort") or "").strip())
    except ValueError:
        raise InvalidParameter("sort") from None

    return ListBooksParams(limit=limit, offset=offset, genre=genre, sort=sort)


def build_list_query(params: ListBooksParams) -> RenderedQuery:
    builder = SelectBuilder(BOOKS_TABLE, BOOK_COLUMNS)
    if params.genre is not None:
        builder.where_equals("genre", params.genre)
    builder.order_by(params.sort)
    builder.limit(params.limit)
    builder.offset(params.offset)
    return builder.build()


def _decode_row(row: Any) -> Book:
    book_id, title, price, genre = row
    return Book.model_validate({"id": book_id, "title": title, "price": price, "genre": genre})


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ListBooksQuery:
    """Lists books for one request against the engine it was built with."""

    def __init__(self, engine: AsyncEngine, timeout: Optional[float] = None) -> None:
        self._engine = engine
        self._timeout = timeout

    async def __call__(self, raw_params: Mapping[str, str]) -> BookPage:
        try:
            params = parse_list_params(raw_params)
        except InvalidParameter as exc:
            logger.warning("books_query_rejected", parameter=exc.parameter, elapsed_ms=0)
            raise

        query = build_list_query(params)
        sql = str(query.statement.compile(dialect=self._engine.dialect))

        async with AsyncExitStack() as stack:
            start = time.perf_counter()
            try:
                # one deadline covers pool checkout and statement execution
                result = await asyncio.wait_for(
                    self._execute(stack, query.statement), timeout=self._timeout
                )
            except asyncio.TimeoutError as exc:
                elapsed_ms = self._record(sql, query.args, start, "timeout")
                raise QueryCancelledError("query timed out", elapsed_ms) from exc
            except asyncio.CancelledError:
                self._record(sql, query.args, start, "cancelled")
                raise
            except (SQLAlchemyError, OSError) as exc:
                elapsed_ms = self._record(sql, query.args, start, "error", error=str(exc))
                raise QueryExecutionError("query execution failed", elapsed_ms) from exc

            elapsed_ms = self._record(sql, query.args, start, "ok")
            stack.callback(result.close)

            try:
                books = [_decode_row(row) for row in result]
            except (SQLAlchemyError, ValidationError, ValueError) as exc:
                logger.error("books_query_decode_failed", sql=sql, error=str(exc))
                raise ResultDecodeError("could not decode book rows", elapsed_ms) from exc

        return BookPage(books=books, elapsed_ms=elapsed_ms)

    async def _execute(self, stack: AsyncExitStack, statement: Any) -> Any:
        """Check out a connection and run the statement; rows come back buffered."""
        conn = await stack.enter_async_context(self._engine.connect())
        return await conn.execute(statement)

    @staticmethod
    def _record(sql: str, args: list, start: float, outcome: str, **extra: Any) -> int:
        elapsed_ms = _elapsed_ms(start)
        BOOKS_QUERY_LATENCY.labels(outcome=outcome).observe(elapsed_ms / 1000)
        log = logger.info if outcome == "ok" else logger.error
        log("books_query", sql=sql, args=args, elapsed_ms=elapsed_ms, outcome=outcome, **extra)
        return elapsed_ms
