"""Crate search indexes: loading, registry, query and resolution."""

from .models import (
    CrateIndex,
    CallableItem,
    DefinitionItem,
    Item,
    ItemKind,
    MatchResult,
    MemberItem,
    ModuleItem,
    PathEntry,
    ResolutionFailure,
    SearchHit,
    Signature,
)
from .loader import load_crate_index
from .store import PayloadStore
from .registry import IndexRegistry
from .resolver import resolve, resolve_position
from .query import QueryEngine, SearchOptions, parse_query

__all__ = [
    "CrateIndex",
    "CallableItem",
    "DefinitionItem",
    "Item",
    "ItemKind",
    "MatchResult",
    "MemberItem",
    "ModuleItem",
    "PathEntry",
    "ResolutionFailure",
    "SearchHit",
    "Signature",
    "load_crate_index",
    "PayloadStore",
    "IndexRegistry",
    "resolve",
    "resolve_position",
    "QueryEngine",
    "SearchOptions",
    "parse_query",
]
