"""Domain Value Objects.

Value objects describe domain concepts by their attributes rather than
their identity: normalized emails and the filter, sort and page settings of
a user listing.
"""

from .email import INVALID_EMAIL, is_valid_email, normalize_email
from .pagination import Page, PageRequest, SortSpec, UserFilters

__all__ = [
    "INVALID_EMAIL",
    "is_valid_email",
    "normalize_email",
    "Page",
    "PageRequest",
    "SortSpec",
    "UserFilters",
]
