"""Shared index payload fixtures for unit tests."""

import copy

import pytest

from docsearch.indexing import IndexRegistry, QueryEngine, load_crate_index

# Mirrors the example crate used throughout the docs: a struct and a
# function attached to it through the Path Table.
DEMO_PAYLOAD = {
    "crateName": "demo",
    "items": [
        {"kind": "struct", "name": "Parser"},
        {
            "kind": "fn",
            "name": "parse",
            "parent": 0,
            "signature": {"inputs": ["str"], "output": "Vec"},
        },
    ],
    "paths": [{"kind": "struct", "name": "Parser"}],
}

# Excerpt of a generated search-index.js payload in the compact row layout.
# Positions:
#   0 crate root      5 Arity         10 Parser::new
#   1 frontend        6 Arity::Zero   11 Parser::parse
#   2 esil            7 Arity::Unary  12 Parser::emit_insts
#   3 Operator        8 Arity::clone  13 serialize
#   4 Parser          9 Operator::new
ESIL_PAYLOAD = {
    "items": [
        [0, "", "radeco", "", None, None],
        [0, "frontend", "", "", None, None],
        [0, "esil", "radeco::frontend", "Module to parse ESIL strings and convert them into the IR.", None, None],
        [3, "Operator", "radeco::frontend::esil", "", None, None],
        [3, "Parser", "", "", None, None],
        [4, "Arity", "", "", None, None],
        [13, "Zero", "", "", 0, None],
        [13, "Unary", "", "", 0, None],
        [11, "clone", "", "", 0, {"inputs": [{"name": "arity"}], "output": {"name": "arity"}}],
        [11, "new", "", "", 1, {"inputs": [{"name": "operator"}, {"name": "str"}, {"name": "arity"}], "output": {"name": "operator"}}],
        [11, "new", "", "", 2, {"inputs": [{"name": "parser"}], "output": {"name": "parser"}}],
        [11, "parse", "", "", 2, {"inputs": [{"name": "parser"}, {"name": "str"}], "output": None}],
        [11, "emit_insts", "", "", 2, {"inputs": [{"name": "parser"}], "output": {"name": "vec"}}],
        [5, "serialize", "radeco::backend::lang_c", "Serializes SCFNodes for debugging purposes.", None, {"inputs": [{"name": "scfnode"}], "output": {"name": "string"}}],
    ],
    "paths": [[4, "Arity"], [3, "Operator"], [3, "Parser"]],
    "crateName": "radeco",
}


@pytest.fixture
def demo_payload():
    return copy.deepcopy(DEMO_PAYLOAD)


@pytest.fixture
def esil_payload():
    return copy.deepcopy(ESIL_PAYLOAD)


@pytest.fixture
def demo_index(demo_payload):
    return load_crate_index(demo_payload)


@pytest.fixture
def esil_index(esil_payload):
    return load_crate_index(esil_payload)


@pytest.fixture
def registry(demo_index, esil_index):
    return IndexRegistry([demo_index, esil_index])


@pytest.fixture
def engine(registry):
    return QueryEngine(registry)
