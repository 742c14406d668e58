"""Error taxonomy and user-friendly translation."""

from .exceptions import (
    DanglingParentIndex,
    DocSearchError,
    IndexIntegrityError,
    InvalidSearchOptions,
    MalformedIndex,
    ParentChainTooDeep,
    PayloadReadError,
    UnsupportedFormatVersion,
)
from .translator import ErrorTranslator, UserFriendlyError

__all__ = [
    "DanglingParentIndex",
    "DocSearchError",
    "IndexIntegrityError",
    "InvalidSearchOptions",
    "MalformedIndex",
    "ParentChainTooDeep",
    "PayloadReadError",
    "UnsupportedFormatVersion",
    "ErrorTranslator",
    "UserFriendlyError",
]
