"""Typed failures raised by index loading, resolution and search."""

from typing import Optional


class DocSearchError(Exception):
    """Base class for every failure raised by docsearch."""


class MalformedIndex(DocSearchError):
    """A raw payload violates the index format and cannot be loaded.

    ``position`` is the offending item (or path entry) position when the
    failure is tied to one row, otherwise None.
    """

    def __init__(
        self,
        reason: str,
        *,
        crate: Optional[str] = None,
        position: Optional[int] = None,
        section: str = "items",
    ):
        self.reason = reason
        self.crate = crate
        self.position = position
        self.section = section
        super().__init__(self._render())

    def _render(self) -> str:
        where = f"crate {self.crate!r}" if self.crate else "payload"
        if self.position is not None:
            where += f", {self.section}[{self.position}]"
        return f"Malformed index ({where}): {self.reason}"


class UnsupportedFormatVersion(MalformedIndex):
    """The payload declares a format version this reader does not understand."""

    def __init__(self, version, *, crate: Optional[str] = None):
        self.version = version
        super().__init__(f"unsupported formatVersion {version!r}", crate=crate)


class IndexIntegrityError(DocSearchError):
    """A registered index references data it does not contain."""


class DanglingParentIndex(IndexIntegrityError):
    """A parent index points outside the crate's Path Table."""

    def __init__(self, crate: str, position: Optional[int], parent_index: int, table_size: int):
        self.crate = crate
        self.position = position
        self.parent_index = parent_index
        self.table_size = table_size
        subject = f"item {position}" if position is not None else "path entry"
        super().__init__(
            f"Dangling parent index in crate {crate!r}: {subject} references "
            f"path {parent_index} but the Path Table has {table_size} entries"
        )


class ParentChainTooDeep(IndexIntegrityError):
    """Walking a parent chain exceeded the depth limit or revisited an entry."""

    def __init__(self, crate: str, position: Optional[int], depth: int):
        self.crate = crate
        self.position = position
        self.depth = depth
        super().__init__(
            f"Parent chain for item {position} in crate {crate!r} "
            f"does not terminate within {depth} containers"
        )


class PayloadReadError(DocSearchError):
    """A payload file could not be read or decoded."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read index payload {path}: {reason}")


class InvalidSearchOptions(DocSearchError, ValueError):
    """Search options were out of range."""
