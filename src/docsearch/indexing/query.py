"""Query engine: resolves search strings against a registry snapshot."""

import logging
import re
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docsearch.errors import IndexIntegrityError, InvalidSearchOptions
from docsearch.indexing.loader import PATH_SEPARATOR
from docsearch.indexing.models import (
    CrateIndex,
    Item,
    ItemKind,
    MatchResult,
    ResolutionFailure,
    SearchHit,
)
from docsearch.indexing.registry import IndexRegistry
from docsearch.indexing.resolver import qualified_path, qualifier_segments

logger = logging.getLogger(__name__)

# Name match tiers
SCORE_EXACT = 100.0
SCORE_PREFIX = 75.0
SCORE_SUBSTRING = 50.0
SCORE_PARENT = 30.0
SCORE_EDIT_BASE = 20.0
SCORE_EDIT_STEP = 5.0

SIGNATURE_EXACT_BONUS = 25.0
MAX_EDIT_DISTANCE = 2

_KIND_PRIORITY: dict[ItemKind, int] = {
    ItemKind.FUNCTION: 0,
    ItemKind.METHOD: 0,
    ItemKind.TRAIT_METHOD: 0,
    ItemKind.STRUCT: 0,
    ItemKind.ENUM: 0,
    ItemKind.TRAIT: 0,
    ItemKind.MODULE: 2,
    ItemKind.EXTERN_CRATE: 2,
}
_DEFAULT_KIND_PRIORITY = 1

_FRAGMENT_SPLIT = re.compile(r"::|\.")
_KIND_PREFIX = re.compile(r"^([a-z]+):(?!:)\s*(.*)$")


@dataclass(frozen=True)
class ParsedQuery:
    """Normalized form of a raw query string."""

    fragments: tuple[str, ...] = ()
    inputs: tuple[str, ...] = ()
    output: Optional[str] = None
    kinds: Optional[frozenset[ItemKind]] = None
    is_signature: bool = False

    @property
    def is_empty(self) -> bool:
        if self.is_signature:
            return not self.inputs and self.output is None
        return not self.fragments


class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    limit: Optional[int] = Field(default=None, ge=0)
    kinds: Optional[frozenset[ItemKind]] = None

    @field_validator("kinds", mode="before")
    @classmethod
    def _coerce_kind_labels(cls, value):
        if value is None:
            return None
        return frozenset(
            ItemKind.from_label(kind) if isinstance(kind, str) else kind
            for kind in value
        )

    @classmethod
    def create(
        cls,
        limit: Optional[int] = None,
        kinds: Optional[Iterable[Union[ItemKind, str]]] = None,
    ) -> "SearchOptions":
        """Build options, raising InvalidSearchOptions instead of ValidationError."""
        try:
            return cls(limit=limit, kinds=kinds)
        except (ValidationError, ValueError) as exc:
            raise InvalidSearchOptions(str(exc)) from exc


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------

def parse_query(query: str) -> ParsedQuery:
    """Lowercase, trim, and split a query into name fragments or a signature."""
    text = query.strip().lower()
    if not text:
        return ParsedQuery()

    kinds = None
    prefix = _KIND_PREFIX.match(text)
    if prefix:
        try:
            kinds = frozenset({ItemKind.from_label(prefix.group(1))})
            text = prefix.group(2)
        except ValueError:
            pass

    if "->" in text:
        left, _, right = text.partition("->")
        outputs = _type_fragments(right)
        return ParsedQuery(
            inputs=tuple(_type_fragments(left)),
            output=outputs[-1] if outputs else None,
            kinds=kinds,
            is_signature=True,
        )

    fragments = tuple(
        part.strip() for part in _FRAGMENT_SPLIT.split(text) if part.strip()
    )
    return ParsedQuery(fragments=fragments, kinds=kinds)


def normalize_type_name(name: str) -> str:
    """``&mut std::vec::Vec<u8>`` -> ``vec``."""
    fragments = _type_fragments(name)
    return fragments[0] if fragments else ""


def _type_fragments(text: str) -> list[str]:
    text = _strip_generics(text)
    text = re.sub(r"&|\bmut\b|\bdyn\b|\bimpl\b", " ", text)
    names = []
    for part in re.split(r"[,\s]+", text):
        part = part.strip("()[]")
        if not part:
            continue
        names.append(_FRAGMENT_SPLIT.split(part)[-1].lower())
    return [name for name in names if name]


def _strip_generics(text: str) -> str:
    depth = 0
    kept = []
    for char in text:
        if char == "<":
            depth += 1
        elif char == ">" and depth:
            depth -= 1
        elif depth == 0:
            kept.append(char)
    return "".join(kept)


# ------------------------------------------------------------------
# Engine
# ------------------------------------------------------------------

@dataclass
class _Candidate:
    crate_index: CrateIndex
    position: int
    item: Item
    score: float


class QueryEngine:
    """Scores every item of a registry snapshot against a query.

    Each ``search`` call takes one snapshot at entry, so concurrent
    registry writes never affect a query already running.
    """

    def __init__(self, registry: IndexRegistry, max_edit_distance: int = MAX_EDIT_DISTANCE) -> None:
        if not 0 <= max_edit_distance <= MAX_EDIT_DISTANCE:
            raise InvalidSearchOptions(
                f"max_edit_distance must be between 0 and {MAX_EDIT_DISTANCE}, got {max_edit_distance}"
            )
        self._registry = registry
        self._max_edit_distance = max_edit_distance

    def search(self, query: str, options: Optional[SearchOptions] = None) -> list[SearchHit]:
        options = options or SearchOptions()
        parsed = parse_query(query)
        if parsed.is_empty:
            return []

        kinds = _intersect_kinds(parsed.kinds, options.kinds)
        if kinds is not None and not kinds:
            return []

        snapshot = self._registry.snapshot()
        started = time.perf_counter()

        if parsed.is_signature:
            candidates = self._signature_candidates(snapshot, parsed, kinds)
        else:
            candidates = self._name_candidates(snapshot, parsed, kinds)

        hits = [self._build_hit(c) for c in candidates]
        hits.sort(key=_sort_key)
        hits = _dedupe(hits)
        if options.limit is not None:
            hits = hits[: options.limit]

        logger.debug(
            "Query %r over %d crate(s): %d hit(s) in %.2fms",
            query, len(snapshot), len(hits), (time.perf_counter() - started) * 1000,
            extra={"query": query},
        )
        return hits

    # ------------------------------------------------------------------
    # Name queries
    # ------------------------------------------------------------------

    def _name_candidates(
        self,
        snapshot: tuple[CrateIndex, ...],
        parsed: ParsedQuery,
        kinds: Optional[frozenset[ItemKind]],
    ) -> list[_Candidate]:
        needle = parsed.fragments[-1]
        preceding = parsed.fragments[:-1]
        matched: list[_Candidate] = []
        pool: list[tuple[_Candidate, str]] = []

        for crate_index, position, item in _iter_items(snapshot, kinds):
            if preceding and not _in_scope(crate_index, position, item, preceding):
                continue
            name = _display_name(item, crate_index).lower()
            score = _name_score(name, needle)
            if score is None and _parent_name(item, crate_index) == needle:
                score = SCORE_PARENT
            candidate = _Candidate(crate_index, position, item, score or 0.0)
            if score is not None:
                matched.append(candidate)
            else:
                pool.append((candidate, name))

        if matched or not pool or not self._max_edit_distance:
            return matched

        # Edit distance is a last resort, used only when nothing matched above
        for candidate, name in pool:
            distance = bounded_edit_distance(name, needle, self._max_edit_distance)
            if distance is not None:
                candidate.score = SCORE_EDIT_BASE - SCORE_EDIT_STEP * distance
                matched.append(candidate)
        return matched

    # ------------------------------------------------------------------
    # Signature queries
    # ------------------------------------------------------------------

    @staticmethod
    def _signature_candidates(
        snapshot: tuple[CrateIndex, ...],
        parsed: ParsedQuery,
        kinds: Optional[frozenset[ItemKind]],
    ) -> list[_Candidate]:
        wanted = len(parsed.inputs) + (1 if parsed.output is not None else 0)
        matched: list[_Candidate] = []

        for crate_index, position, item in _iter_items(snapshot, kinds):
            signature = item.signature
            if signature is None:
                continue
            remaining = [normalize_type_name(t) for t in signature.inputs]
            hits = 0
            for type_name in parsed.inputs:
                if type_name in remaining:
                    remaining.remove(type_name)
                    hits += 1
            if (
                parsed.output is not None
                and signature.output is not None
                and normalize_type_name(signature.output) == parsed.output
            ):
                hits += 1
            if not hits:
                continue

            score = 100.0 * hits / wanted
            if hits == wanted and not remaining:
                score += SIGNATURE_EXACT_BONUS
            matched.append(_Candidate(crate_index, position, item, score))
        return matched

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @staticmethod
    def _build_hit(candidate: _Candidate) -> SearchHit:
        item, crate_index = candidate.item, candidate.crate_index
        try:
            qualifiers = qualifier_segments(item, crate_index, candidate.position)
        except IndexIntegrityError as exc:
            logger.warning(
                "Unresolvable item in search results: %s", exc,
                extra={"crate": crate_index.crate_name},
            )
            return ResolutionFailure(
                crate=crate_index.crate_name,
                path=PATH_SEPARATOR.join(item.module_path + (item.name,)),
                kind=item.kind,
                score=candidate.score,
                position=candidate.position,
                error=str(exc),
            )

        return MatchResult(
            crate=crate_index.crate_name,
            path=qualified_path(item, crate_index, qualifiers),
            kind=item.kind,
            summary=item.summary,
            score=candidate.score,
            signature=item.signature,
            position=candidate.position,
        )


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _iter_items(
    snapshot: tuple[CrateIndex, ...],
    kinds: Optional[frozenset[ItemKind]],
) -> Iterator[tuple[CrateIndex, int, Item]]:
    for crate_index in snapshot:
        for position, item in enumerate(crate_index.items):
            if kinds is None or item.kind in kinds:
                yield crate_index, position, item


def _intersect_kinds(
    a: Optional[frozenset[ItemKind]],
    b: Optional[frozenset[ItemKind]],
) -> Optional[frozenset[ItemKind]]:
    if a is None:
        return b
    if b is None:
        return a
    return a & b


def _display_name(item: Item, crate_index: CrateIndex) -> str:
    if item.is_crate_root:
        return crate_index.crate_name
    return item.name


def _parent_name(item: Item, crate_index: CrateIndex) -> Optional[str]:
    parent = item.parent
    if parent is None or parent >= len(crate_index.paths):
        return None
    return crate_index.paths[parent].name.lower()


def _name_score(name: str, needle: str) -> Optional[float]:
    if name == needle:
        return SCORE_EXACT
    if name.startswith(needle):
        return SCORE_PREFIX
    if needle in name:
        return SCORE_SUBSTRING
    return None


def _in_scope(
    crate_index: CrateIndex,
    position: int,
    item: Item,
    preceding: tuple[str, ...],
) -> bool:
    """Whether the item lives under the qualifier fragments typed before its name."""
    try:
        qualifiers = qualifier_segments(item, crate_index, position)
    except IndexIntegrityError:
        # Kept so the failure is reported when the hit is built
        return True
    return _qualifiers_match(qualifiers, preceding)


def _qualifiers_match(qualifiers: tuple[str, ...], fragments: tuple[str, ...]) -> bool:
    """Each fragment must be found, in order, in a distinct qualifier segment."""
    segments = iter(segment.lower() for segment in qualifiers)
    return all(any(fragment in segment for segment in segments) for fragment in fragments)


def bounded_edit_distance(a: str, b: str, limit: int) -> Optional[int]:
    """Levenshtein distance between ``a`` and ``b``, or None if above ``limit``."""
    if abs(len(a) - len(b)) > limit:
        return None
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        if min(current) > limit:
            return None
        previous = current
    distance = previous[-1]
    return distance if distance <= limit else None


def _sort_key(hit: SearchHit) -> tuple:
    return (
        -hit.score,
        _KIND_PRIORITY.get(hit.kind, _DEFAULT_KIND_PRIORITY),
        hit.path.lower(),
        hit.path,
        hit.crate,
        hit.position,
    )


def _dedupe(hits: list[SearchHit]) -> list[SearchHit]:
    seen: set[tuple[str, ItemKind, str]] = set()
    unique = []
    for hit in hits:
        key = (hit.crate, hit.kind, hit.path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(hit)
    return unique
