"""
Identifier parsing and clamped pagination parameters.

Both are constructed once at the API boundary; services only ever see a
parsed ``uuid.UUID`` and a ``PageParams`` whose bounds are already enforced.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Query

from app.core.config import get_settings
from app.core.errors import InvalidReference, ValidationError
from vidhub_shared.schemas.common import Pagination

settings = get_settings()


def parse_id(value: Union[str, uuid.UUID, None], what: str = "resource") -> uuid.UUID:
    """Validate an opaque identifier against the store's id format.

    A malformed id is always a client error, never a lookup miss.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not value or not isinstance(value, str):
        raise InvalidReference(f"Invalid {what} ID")
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise InvalidReference(f"Invalid {what} ID")


@dataclass(frozen=True)
class PageParams:
    page: int
    page_size: int

    @classmethod
    def build(
        cls,
        page: Optional[Union[int, str]] = None,
        page_size: Optional[Union[int, str]] = None,
    ) -> "PageParams":
        """Clamp raw page/limit input: page >= 1, 1 <= page_size <= page_size_max."""
        try:
            page_num = int(page) if page is not None else 1
            size = int(page_size) if page_size is not None else settings.page_size_default
        except (TypeError, ValueError):
            raise ValidationError("page and limit must be integers")
        page_num = max(1, page_num)
        size = min(max(1, size), settings.page_size_max)
        return cls(page=page_num, page_size=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def describe(self, total: int) -> Pagination:
        return Pagination(
            page=self.page,
            per_page=self.page_size,
            total=total,
            total_pages=math.ceil(total / self.page_size) if total else 0,
        )


def page_params(
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Items per page"),
) -> PageParams:
    """FastAPI dependency producing clamped pagination parameters."""
    return PageParams.build(page, limit)
