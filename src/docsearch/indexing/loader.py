"""Builds validated CrateIndex objects from raw index payloads.

A raw payload is the only serialized shape exchanged with the index
generator::

    {
        "crateName": "demo",
        "formatVersion": 1,
        "items": [[kind, name, path, desc, parent, signature], ...],
        "paths": [[kind, name], ...],
    }

Items may also be given as objects with the same keys. An empty ``path``
repeats the previous item's module path, which is how the generator keeps
payloads compact.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from pydantic import ValidationError

from docsearch.errors import MalformedIndex, UnsupportedFormatVersion
from docsearch.indexing.models import (
    CONTAINER_KINDS,
    ITEM_CLASSES,
    PARENT_REQUIRED,
    CallableItem,
    CrateIndex,
    Item,
    ItemKind,
    PathEntry,
    Signature,
)

logger = logging.getLogger(__name__)

SUPPORTED_FORMAT_VERSIONS: frozenset[int] = frozenset({1})
PATH_SEPARATOR = "::"

_ITEM_ROW_FIELDS = ("kind", "name", "path", "desc", "parent", "signature")


def load_crate_index(raw: Mapping[str, Any]) -> CrateIndex:
    """Validate ``raw`` and return an immutable CrateIndex.

    Raises MalformedIndex citing the offending position when any item or
    path entry is structurally invalid. Nothing is registered here.
    """
    if not isinstance(raw, Mapping):
        raise MalformedIndex(f"payload must be an object, got {type(raw).__name__}")

    crate_name = raw.get("crateName", raw.get("crate_name"))
    if not isinstance(crate_name, str) or not crate_name:
        raise MalformedIndex("missing required field 'crateName'")

    version = raw.get("formatVersion", raw.get("format_version", 1))
    if (
        not isinstance(version, int)
        or isinstance(version, bool)
        or version not in SUPPORTED_FORMAT_VERSIONS
    ):
        raise UnsupportedFormatVersion(version, crate=crate_name)

    raw_items = raw.get("items")
    raw_paths = raw.get("paths", [])
    if not _is_sequence(raw_items):
        raise MalformedIndex("missing required field 'items'", crate=crate_name)
    if not _is_sequence(raw_paths):
        raise MalformedIndex("'paths' must be a list", crate=crate_name)

    paths = tuple(
        _parse_path_entry(entry, crate_name, position)
        for position, entry in enumerate(raw_paths)
    )
    _check_path_nesting(paths, crate_name)

    items: list[Item] = []
    previous_path: Optional[tuple[str, ...]] = None
    root_position: Optional[int] = None
    for position, row in enumerate(raw_items):
        item = _parse_item(row, crate_name, position, previous_path, len(paths))
        if item.is_crate_root:
            if root_position is not None:
                raise MalformedIndex(
                    f"duplicate crate root (first at items[{root_position}])",
                    crate=crate_name,
                    position=position,
                )
            root_position = position
        previous_path = item.module_path
        items.append(item)

    index = CrateIndex(
        crate_name=crate_name,
        items=tuple(items),
        paths=paths,
        format_version=version,
    )
    logger.debug(
        "Loaded crate index %s: %d items, %d paths", crate_name, len(items), len(paths)
    )
    return index


# ------------------------------------------------------------------
# Path Table
# ------------------------------------------------------------------

def _parse_path_entry(entry: Any, crate: str, position: int) -> PathEntry:
    def fail(reason: str) -> MalformedIndex:
        return MalformedIndex(reason, crate=crate, position=position, section="paths")

    if isinstance(entry, Mapping):
        kind_raw, name, parent = entry.get("kind"), entry.get("name"), entry.get("parent")
    elif _is_sequence(entry) and len(entry) in (2, 3):
        kind_raw, name = entry[0], entry[1]
        parent = entry[2] if len(entry) == 3 else None
    else:
        raise fail("path entry must be [kind, name] or an object")

    kind = _coerce_kind(kind_raw, fail)
    if kind not in CONTAINER_KINDS:
        raise fail(f"path entry kind {kind.label!r} is not a container kind")
    if not isinstance(name, str) or not name:
        raise fail("path entry name must be a non-empty string")
    if parent is not None and not _is_index(parent):
        raise fail(f"path entry parent must be an index, got {parent!r}")
    return PathEntry(kind=kind, name=name, parent=parent)


def _check_path_nesting(paths: tuple[PathEntry, ...], crate: str) -> None:
    """Every nested container must resolve in range and without cycles."""
    for position, entry in enumerate(paths):
        seen = {position}
        current = entry
        while current.parent is not None:
            if current.parent >= len(paths):
                raise MalformedIndex(
                    f"container parent {current.parent} is out of range "
                    f"(Path Table has {len(paths)} entries)",
                    crate=crate,
                    position=position,
                    section="paths",
                )
            if current.parent in seen:
                raise MalformedIndex(
                    "container nesting forms a cycle",
                    crate=crate,
                    position=position,
                    section="paths",
                )
            seen.add(current.parent)
            current = paths[current.parent]


# ------------------------------------------------------------------
# Item Store
# ------------------------------------------------------------------

def _parse_item(
    row: Any,
    crate: str,
    position: int,
    previous_path: Optional[tuple[str, ...]],
    path_count: int,
) -> Item:
    def fail(reason: str) -> MalformedIndex:
        return MalformedIndex(reason, crate=crate, position=position)

    if isinstance(row, Mapping):
        fields = {key: row.get(key) for key in _ITEM_ROW_FIELDS}
        if "desc" not in row and "summary" in row:
            fields["desc"] = row.get("summary")
    elif _is_sequence(row) and 2 <= len(row) <= len(_ITEM_ROW_FIELDS):
        fields = dict.fromkeys(_ITEM_ROW_FIELDS)
        fields.update(zip(_ITEM_ROW_FIELDS, row))
    else:
        raise fail("item must be a [kind, name, path, desc, parent, signature] row or an object")

    kind = _coerce_kind(fields["kind"], fail)
    name = fields["name"]
    if name is None:
        raise fail("missing required field 'name'")
    if not isinstance(name, str):
        raise fail(f"item name must be a string, got {type(name).__name__}")

    module_path = _expand_module_path(fields["path"], previous_path or (crate,), fail)

    is_root = kind == ItemKind.MODULE and not name
    if not name and not is_root:
        raise fail(f"{kind.label} item has an empty name")

    desc = fields["desc"]
    if desc is not None and not isinstance(desc, str):
        raise fail("item description must be a string")

    item_cls = ITEM_CLASSES[kind]
    values: dict[str, Any] = {
        "kind": kind,
        "name": name,
        "module_path": module_path,
        "summary": desc or "",
    }

    parent = fields["parent"]
    if parent is not None:
        if "parent" not in item_cls.model_fields:
            raise fail(f"{kind.label} items cannot have a parent")
        if not _is_index(parent):
            raise fail(f"parent must be an index, got {parent!r}")
        if parent >= path_count:
            raise fail(
                f"parent index {parent} is out of range "
                f"(Path Table has {path_count} entries)"
            )
        values["parent"] = parent
    elif kind in PARENT_REQUIRED:
        raise fail(f"{kind.label} items require a parent index")

    signature = fields["signature"]
    if signature is not None:
        if item_cls is not CallableItem:
            raise fail(f"{kind.label} items cannot have a signature")
        values["signature"] = _parse_signature(signature, fail)

    try:
        return item_cls(**values)
    except ValidationError as exc:
        raise fail(f"invalid item: {exc.errors()[0]['msg']}") from exc


def _expand_module_path(path: Any, previous: tuple[str, ...], fail) -> tuple[str, ...]:
    # An omitted path continues the previous item's module (the crate root for the first item)
    if path is None or path == "":
        return previous
    if isinstance(path, str):
        segments = tuple(path.split(PATH_SEPARATOR))
    elif _is_sequence(path) and all(isinstance(seg, str) for seg in path):
        segments = tuple(path)
    else:
        raise fail("module path must be a string or a list of segments")
    if any(not seg for seg in segments):
        raise fail(f"module path {path!r} has an empty segment")
    return segments


def _parse_signature(raw: Any, fail) -> Signature:
    if not isinstance(raw, Mapping):
        raise fail("signature must be an object with 'inputs' and 'output'")
    inputs = raw.get("inputs") or []
    if not _is_sequence(inputs):
        raise fail("signature inputs must be a list")
    output = raw.get("output")
    return Signature(
        inputs=tuple(_type_name(value, fail) for value in inputs),
        output=_type_name(output, fail) if output is not None else None,
    )


def _type_name(value: Any, fail) -> str:
    if isinstance(value, Mapping):
        value = value.get("name")
    if not isinstance(value, str) or not value:
        raise fail(f"signature type must be a name, got {value!r}")
    return value


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _coerce_kind(value: Any, fail) -> ItemKind:
    if isinstance(value, ItemKind):
        return value
    if isinstance(value, str):
        try:
            return ItemKind.from_label(value)
        except ValueError:
            raise fail(f"unknown item kind {value!r}") from None
    if _is_index(value):
        try:
            return ItemKind(value)
        except ValueError:
            raise fail(f"unknown item kind code {value}") from None
    raise fail("missing required field 'kind'")


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
