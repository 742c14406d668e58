"""Data models for crate search indexes and search results."""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ItemKind(int, Enum):
    """Symbol categories, valued by the item-type codes of the raw payload."""

    MODULE = 0
    EXTERN_CRATE = 1
    STRUCT = 3
    ENUM = 4
    FUNCTION = 5
    TYPEDEF = 6
    STATIC = 7
    TRAIT = 8
    TRAIT_METHOD = 10
    METHOD = 11
    FIELD = 12
    VARIANT = 13
    MACRO = 14
    PRIMITIVE = 15
    ASSOCIATED_TYPE = 16
    CONSTANT = 17
    ASSOCIATED_CONST = 18

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "ItemKind":
        try:
            return _LABEL_KINDS[label.lower()]
        except KeyError:
            raise ValueError(f"Unknown item kind label: {label!r}") from None


_KIND_LABELS: dict[ItemKind, str] = {
    ItemKind.MODULE: "mod",
    ItemKind.EXTERN_CRATE: "externcrate",
    ItemKind.STRUCT: "struct",
    ItemKind.ENUM: "enum",
    ItemKind.FUNCTION: "fn",
    ItemKind.TYPEDEF: "type",
    ItemKind.STATIC: "static",
    ItemKind.TRAIT: "trait",
    ItemKind.TRAIT_METHOD: "tymethod",
    ItemKind.METHOD: "method",
    ItemKind.FIELD: "structfield",
    ItemKind.VARIANT: "variant",
    ItemKind.MACRO: "macro",
    ItemKind.PRIMITIVE: "primitive",
    ItemKind.ASSOCIATED_TYPE: "associatedtype",
    ItemKind.CONSTANT: "constant",
    ItemKind.ASSOCIATED_CONST: "associatedconstant",
}

_LABEL_KINDS: dict[str, ItemKind] = {label: kind for kind, label in _KIND_LABELS.items()}
_LABEL_KINDS.update({
    "module": ItemKind.MODULE,
    "function": ItemKind.FUNCTION,
    "field": ItemKind.FIELD,
    "const": ItemKind.CONSTANT,
    "typedef": ItemKind.TYPEDEF,
})

# Kinds a Path Table entry may describe
CONTAINER_KINDS: frozenset[ItemKind] = frozenset({
    ItemKind.MODULE,
    ItemKind.STRUCT,
    ItemKind.ENUM,
    ItemKind.VARIANT,
    ItemKind.TRAIT,
    ItemKind.TYPEDEF,
    ItemKind.PRIMITIVE,
})


class Signature(BaseModel):
    """Typed inputs and output of a callable item."""

    model_config = ConfigDict(frozen=True)

    inputs: tuple[str, ...] = ()
    output: Optional[str] = None

    def render(self) -> str:
        rendered = f"({', '.join(self.inputs)})"
        if self.output:
            rendered += f" -> {self.output}"
        return rendered


class PathEntry(BaseModel):
    """Container descriptor; identity is its position in the crate's Path Table."""

    model_config = ConfigDict(frozen=True)

    kind: ItemKind
    name: str = Field(min_length=1)
    parent: Optional[int] = Field(default=None, ge=0)


class _ItemBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    module_path: tuple[str, ...] = ()
    summary: str = ""

    @property
    def is_crate_root(self) -> bool:
        return False


class ModuleItem(_ItemBase):
    kind: Literal[ItemKind.MODULE, ItemKind.EXTERN_CRATE]

    @property
    def parent(self) -> None:
        return None

    @property
    def signature(self) -> None:
        return None

    @property
    def is_crate_root(self) -> bool:
        return self.kind == ItemKind.MODULE and not self.name


class DefinitionItem(_ItemBase):
    kind: Literal[
        ItemKind.STRUCT,
        ItemKind.ENUM,
        ItemKind.TRAIT,
        ItemKind.TYPEDEF,
        ItemKind.STATIC,
        ItemKind.CONSTANT,
        ItemKind.MACRO,
        ItemKind.PRIMITIVE,
    ]
    name: str = Field(min_length=1)

    @property
    def parent(self) -> None:
        return None

    @property
    def signature(self) -> None:
        return None


class MemberItem(_ItemBase):
    """Variant, field or associated constant living inside a container."""

    kind: Literal[ItemKind.VARIANT, ItemKind.FIELD, ItemKind.ASSOCIATED_CONST]
    name: str = Field(min_length=1)
    parent: Optional[int] = Field(default=None, ge=0)

    @property
    def signature(self) -> None:
        return None


class CallableItem(_ItemBase):
    """Function, method or associated type; the only kinds carrying a signature."""

    kind: Literal[
        ItemKind.FUNCTION,
        ItemKind.TRAIT_METHOD,
        ItemKind.METHOD,
        ItemKind.ASSOCIATED_TYPE,
    ]
    name: str = Field(min_length=1)
    parent: Optional[int] = Field(default=None, ge=0)
    signature: Optional[Signature] = None


Item = Union[ModuleItem, DefinitionItem, MemberItem, CallableItem]

ITEM_CLASSES: dict[ItemKind, type] = {}
for _cls in (ModuleItem, DefinitionItem, MemberItem, CallableItem):
    for _kind in _cls.model_fields["kind"].annotation.__args__:
        ITEM_CLASSES[_kind] = _cls

# Kinds whose items must name a parent container
PARENT_REQUIRED: frozenset[ItemKind] = frozenset({
    ItemKind.VARIANT,
    ItemKind.FIELD,
    ItemKind.TRAIT_METHOD,
    ItemKind.METHOD,
})


class CrateIndex(BaseModel):
    """Validated, immutable index of one crate."""

    model_config = ConfigDict(frozen=True)

    crate_name: str = Field(min_length=1)
    items: tuple[Item, ...] = ()
    paths: tuple[PathEntry, ...] = ()
    format_version: int = 1


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    crate: str
    path: str
    kind: ItemKind
    summary: str = ""
    score: float
    signature: Optional[Signature] = None
    position: int

    @property
    def ok(self) -> bool:
        return True


class ResolutionFailure(BaseModel):
    """Stands in for a matched item whose parent chain could not be resolved."""

    model_config = ConfigDict(frozen=True)

    crate: str
    path: str
    kind: ItemKind
    score: float
    position: int
    error: str

    @property
    def ok(self) -> bool:
        return False


SearchHit = Union[MatchResult, ResolutionFailure]
