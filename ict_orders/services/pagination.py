"""Page container and page argument validation shared by list queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ict_orders.core.config import settings
from ict_orders.services.errors import ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the total size of the filtered set."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20


def resolve_page(page: int, page_size: int | None) -> tuple[int, int]:
    """Validate 1-based page arguments and return ``(offset, limit)``."""
    size = settings.default_page_size if page_size is None else page_size
    if page < 1:
        raise ValidationError("page must be >= 1")
    if size < 1:
        raise ValidationError("page_size must be >= 1")
    size = min(size, settings.max_page_size)
    return (page - 1) * size, size
