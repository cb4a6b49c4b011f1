"""Errors raised while listing books.

Every error carries the elapsed database time in milliseconds so the HTTP
layer can report it, and maps to a 400 response.
"""

from __future__ import annotations


class BookQueryError(Exception):
    status_code = 400

    def __init__(self, message: str, elapsed_ms: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.elapsed_ms = elapsed_ms


class InvalidParameter(BookQueryError):
    """A query parameter could not be parsed or is out of range."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"invalid {parameter}")
        self.parameter = parameter


class QueryExecutionError(BookQueryError):
    """The database call failed (connectivity, syntax, constraint)."""


class QueryCancelledError(QueryExecutionError):
    """The database call was aborted before it completed."""


class ResultDecodeError(BookQueryError):
    """A row could not be mapped to a Book or reading the result failed."""
