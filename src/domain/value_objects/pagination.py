"""Listing value objects: filters, sort order and page windows.

These value objects carry the listing rules (sortable columns, page-size
ceiling, the created_at-descending default) so repositories and routes only
pass them through.
"""

import math
from dataclasses import dataclass, field
from typing import ClassVar, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class UserFilters:
    """Optional listing filters.

    Attributes:
        role: Only users with this role id; an id outside `Role` matches nobody.
        search: Substring matched against first name, last name or email.
    """

    role: Optional[int] = None
    search: Optional[str] = None


@dataclass(frozen=True)
class SortSpec:
    """A whitelisted sort column and direction.

    Unknown columns fall back to the default order (newest first) instead of
    failing the request; any direction other than ``asc`` means descending.
    """

    column: str = "created_at"
    direction: str = "desc"

    SORTABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        "first_name",
        "last_name",
        "email",
        "role",
        "created_at",
        "updated_at",
    )
    DEFAULT_FIELD: ClassVar[str] = "created_at"
    DEFAULT_DIRECTION: ClassVar[str] = "desc"

    @classmethod
    def parse(cls, sort_by: Optional[str], sort_order: Optional[str]) -> "SortSpec":
        if sort_by not in cls.SORTABLE_FIELDS:
            return cls(cls.DEFAULT_FIELD, cls.DEFAULT_DIRECTION)
        direction = "asc" if (sort_order or "").lower() == "asc" else "desc"
        return cls(sort_by, direction)

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page number and a page size clamped to [1, MAX_PER_PAGE].

    Page numbers past `MAX_PAGE` are clamped to it; such a page is simply empty.
    """

    page: int = 1
    per_page: int = 15

    DEFAULT_PER_PAGE: ClassVar[int] = 15
    MAX_PER_PAGE: ClassVar[int] = 100
    # Keeps the row offset inside a signed 64-bit integer.
    MAX_PAGE: ClassVar[int] = (2**63 - 1) // MAX_PER_PAGE

    @classmethod
    def parse(cls, page: Optional[int], per_page: Optional[int]) -> "PageRequest":
        size = per_page if per_page else cls.DEFAULT_PER_PAGE
        size = max(1, min(size, cls.MAX_PER_PAGE))
        return cls(page=min(max(1, page or 1), cls.MAX_PAGE), per_page=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the metadata clients use to navigate."""

    items: List[T]
    total: int
    request: PageRequest = field(default_factory=PageRequest)

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.request.per_page))

    @property
    def first_item(self) -> Optional[int]:
        return self.request.offset + 1 if self.items else None

    @property
    def last_item(self) -> Optional[int]:
        return self.request.offset + len(self.items) if self.items else None

    def metadata(self) -> dict:
        return {
            "current_page": self.request.page,
            "last_page": self.last_page,
            "per_page": self.request.per_page,
            "total": self.total,
            "from": self.first_item,
            "to": self.last_item,
        }
