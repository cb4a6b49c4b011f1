"""Book listing route: public, read-only."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from book_catalog.context import AppContext, get_context
from book_catalog.services.book_query import ListBooksQuery

router = APIRouter(prefix="/books", tags=["Books"])

QUERY_TIME_HEADER = "X-Query-Time"


class PrettyJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return (json.dumps(content, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


def get_books_query(context: AppContext = Depends(get_context)) -> ListBooksQuery:
    return ListBooksQuery(context.engine, timeout=context.settings.query_timeout_seconds)


@router.get("", response_class=PrettyJSONResponse)
async def list_books(
    request: Request,
    books_query: ListBooksQuery = Depends(get_books_query),
):
    """
    List books, optionally filtered by exact genre and sorted by price.

    Query parameters: ``limit`` (1-100, default 10), ``offset`` (default 0),
    ``genre`` and ``sort`` (``price_asc`` | ``price_desc``). Errors are
    returned as plain text with status 400.
    """
    # first occurrence wins for repeated parameters
    params = {key: request.query_params.getlist(key)[0] for key in request.query_params.keys()}
    page = await books_query(params)
    return PrettyJSONResponse(
        content=[book.model_dump() for book in page.books],
        headers={QUERY_TIME_HEADER: f"{page.elapsed_ms}ms"},
    )
