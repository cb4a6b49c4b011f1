"""Book schemas."""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field


class SortOrder(str, enum.Enum):
    NONE = ""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class Book(BaseModel):
    id: int
    title: str
    price: int
    genre: str

    model_config = {"frozen": True, "strict": True}


class ListBooksParams(BaseModel):
    limit: int = Field(10, ge=1, le=100)
    offset: int = Field(0, ge=0)
    genre: Optional[str] = None
    sort: SortOrder = SortOrder.NONE

    model_config = {"frozen": True}


class BookPage(BaseModel):
    books: list[Book]
    elapsed_ms: int
