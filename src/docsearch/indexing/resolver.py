"""Turns items into fully qualified, navigable paths."""

from typing import Optional

from docsearch.errors import DanglingParentIndex, ParentChainTooDeep
from docsearch.indexing.loader import PATH_SEPARATOR
from docsearch.indexing.models import CrateIndex, Item, PathEntry

# Deepest container nesting followed (e.g. crate::mod::Enum::Variant::field
# needs 2); anything longer is treated as corrupt.
MAX_PARENT_DEPTH = 8


def parent_chain(
    item: Item,
    crate_index: CrateIndex,
    position: Optional[int] = None,
    max_depth: int = MAX_PARENT_DEPTH,
) -> list[PathEntry]:
    """Return the item's containers, outermost first.

    Re-checks every index against the Path Table even though the loader
    already did: a CrateIndex can be built directly from cached data.
    """
    paths = crate_index.paths
    chain: list[PathEntry] = []
    seen: set[int] = set()
    index = item.parent
    while index is not None:
        if index >= len(paths):
            raise DanglingParentIndex(crate_index.crate_name, position, index, len(paths))
        if index in seen or len(chain) >= max_depth:
            raise ParentChainTooDeep(crate_index.crate_name, position, max_depth)
        seen.add(index)
        entry = paths[index]
        chain.append(entry)
        index = entry.parent
    chain.reverse()
    return chain


def qualifier_segments(
    item: Item,
    crate_index: CrateIndex,
    position: Optional[int] = None,
) -> tuple[str, ...]:
    """Module path followed by parent container names, without the item name."""
    segments = list(item.module_path)
    for entry in parent_chain(item, crate_index, position):
        # Members are often emitted with their container already in the path
        if segments and segments[-1] == entry.name:
            continue
        segments.append(entry.name)
    return tuple(segments)


def qualified_path(item: Item, crate_index: CrateIndex, qualifiers: tuple[str, ...]) -> str:
    if item.is_crate_root:
        return crate_index.crate_name
    return PATH_SEPARATOR.join(qualifiers + (item.name,))


def resolve(item: Item, crate_index: CrateIndex, position: Optional[int] = None) -> str:
    """Fully qualified ``crate::module::Parent::name`` path of ``item``."""
    return qualified_path(item, crate_index, qualifier_segments(item, crate_index, position))


def resolve_position(crate_index: CrateIndex, position: int) -> str:
    """Resolve the item stored at ``position`` in the crate's Item Store."""
    if not 0 <= position < len(crate_index.items):
        raise IndexError(
            f"crate {crate_index.crate_name!r} has no item at position {position}"
        )
    return resolve(crate_index.items[position], crate_index, position)
