"""Tests for query parsing, scoring and ranking."""

import pytest

from docsearch.errors import InvalidSearchOptions
from docsearch.indexing.loader import load_crate_index
from docsearch.indexing.models import (
    CrateIndex,
    DefinitionItem,
    ItemKind,
    MemberItem,
    PathEntry,
)
from docsearch.indexing.query import (
    SCORE_EXACT,
    SCORE_PARENT,
    SCORE_PREFIX,
    SCORE_SUBSTRING,
    QueryEngine,
    SearchOptions,
    bounded_edit_distance,
    normalize_type_name,
    parse_query,
)
from docsearch.indexing.registry import IndexRegistry


def _engine(*indexes, **kwargs) -> QueryEngine:
    return QueryEngine(IndexRegistry(indexes), **kwargs)


def _paths(hits):
    return [hit.path for hit in hits]


class TestParseQuery:

    def test_empty(self):
        assert parse_query("").is_empty
        assert parse_query("   \t").is_empty

    def test_name_fragments(self):
        parsed = parse_query("  Esil::Parser ")
        assert parsed.fragments == ("esil", "parser")
        assert not parsed.is_signature

    def test_dot_separator(self):
        assert parse_query("arity.clone").fragments == ("arity", "clone")

    def test_signature(self):
        parsed = parse_query("str -> Vec")
        assert parsed.is_signature
        assert parsed.inputs == ("str",)
        assert parsed.output == "vec"

    def test_signature_multiple_inputs(self):
        parsed = parse_query("&mut Parser, &str -> Option<Vec<u8>>")
        assert parsed.inputs == ("parser", "str")
        assert parsed.output == "option"

    def test_output_only_signature(self):
        parsed = parse_query("-> vec")
        assert parsed.inputs == ()
        assert parsed.output == "vec"

    def test_bare_arrow_is_empty(self):
        assert parse_query("->").is_empty

    def test_kind_prefix(self):
        parsed = parse_query("fn:parse")
        assert parsed.kinds == frozenset({ItemKind.FUNCTION})
        assert parsed.fragments == ("parse",)

    def test_unknown_prefix_stays_in_name(self):
        parsed = parse_query("foo:bar")
        assert parsed.kinds is None
        assert parsed.fragments == ("foo:bar",)

    def test_path_separator_is_not_a_prefix(self):
        parsed = parse_query("struct::parser")
        assert parsed.kinds is None
        assert parsed.fragments == ("struct", "parser")


class TestTypeNormalization:

    @pytest.mark.parametrize("raw, expected", [
        ("Vec", "vec"),
        ("&str", "str"),
        ("&mut Parser", "parser"),
        ("std::vec::Vec<u8>", "vec"),
        ("Option<Vec<u8>>", "option"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_type_name(raw) == expected


class TestEditDistance:

    def test_identical(self):
        assert bounded_edit_distance("parser", "parser", 2) == 0

    def test_within_limit(self):
        assert bounded_edit_distance("parser", "parsr", 2) == 1
        assert bounded_edit_distance("parse", "parsr", 2) == 1
        assert bounded_edit_distance("arity", "arty", 2) == 1

    def test_over_limit(self):
        assert bounded_edit_distance("operator", "parser", 2) is None
        assert bounded_edit_distance("a", "abcd", 2) is None


class TestSearchOptions:

    def test_kind_labels(self):
        opts = SearchOptions.create(kinds=["fn", "struct"])
        assert opts.kinds == frozenset({ItemKind.FUNCTION, ItemKind.STRUCT})

    def test_negative_limit(self):
        with pytest.raises(InvalidSearchOptions):
            SearchOptions.create(limit=-1)

    def test_unknown_kind(self):
        with pytest.raises(InvalidSearchOptions):
            SearchOptions.create(kinds=["impl"])

    def test_invalid_edit_distance(self):
        with pytest.raises(InvalidSearchOptions):
            QueryEngine(IndexRegistry(), max_edit_distance=3)


class TestNameSearch:

    def test_empty_query_returns_empty(self, engine):
        assert engine.search("") == []
        assert engine.search("   ") == []

    def test_no_match_returns_empty(self, engine):
        assert engine.search("zzzzzzzz") == []

    def test_demo_parser_ranks_struct_above_function(self, demo_index):
        hits = _engine(demo_index).search("parser")
        assert _paths(hits) == ["demo::Parser", "demo::Parser::parse"]
        assert hits[0].kind == ItemKind.STRUCT
        assert hits[0].score == SCORE_EXACT
        assert hits[1].score == SCORE_PARENT

    def test_exact_beats_substring(self):
        idx = load_crate_index({
            "crateName": "tiers",
            "items": [
                {"kind": "fn", "name": "ParserState"},
                {"kind": "fn", "name": "subparser"},
                {"kind": "fn", "name": "parser"},
            ],
        })
        hits = _engine(idx).search("PARSER")
        assert [hit.score for hit in hits] == [SCORE_EXACT, SCORE_PREFIX, SCORE_SUBSTRING]
        assert _paths(hits) == ["tiers::parser", "tiers::ParserState", "tiers::subparser"]

    def test_parent_match_lists_methods(self, esil_index):
        hits = _engine(esil_index).search("parser")
        assert _paths(hits) == [
            "radeco::frontend::esil::Parser",
            "radeco::frontend::esil::Parser::emit_insts",
            "radeco::frontend::esil::Parser::new",
            "radeco::frontend::esil::Parser::parse",
        ]

    def test_prefix_ties_break_on_path(self, esil_index):
        hits = _engine(esil_index).search("pars")
        assert _paths(hits) == [
            "radeco::frontend::esil::Parser",
            "radeco::frontend::esil::Parser::parse",
        ]
        assert {hit.score for hit in hits} == {SCORE_PREFIX}

    def test_same_name_ordered_by_path(self, esil_index):
        hits = _engine(esil_index).search("new")
        assert _paths(hits) == [
            "radeco::frontend::esil::Operator::new",
            "radeco::frontend::esil::Parser::new",
        ]

    def test_kind_priority_on_equal_score(self):
        idx = load_crate_index({
            "crateName": "demo",
            "items": [
                [0, "token", "demo", "", None, None],
                [17, "TOKEN", "demo", "", None, None],
                [3, "Token", "demo", "", None, None],
            ],
        })
        hits = _engine(idx).search("token")
        assert [hit.kind for hit in hits] == [ItemKind.STRUCT, ItemKind.CONSTANT, ItemKind.MODULE]

    def test_crate_root_matches_crate_name(self, esil_index):
        hits = _engine(esil_index).search("radeco")
        assert _paths(hits) == ["radeco"]
        assert hits[0].kind == ItemKind.MODULE

    def test_summary_and_signature_carried(self, esil_index):
        hits = _engine(esil_index).search("serialize")
        assert hits[0].summary == "Serializes SCFNodes for debugging purposes."
        assert hits[0].signature.output == "string"
        assert hits[0].crate == "radeco"
        assert hits[0].position == 13

    def test_late_crate_root_listed_by_crate_name(self):
        idx = load_crate_index({
            "crateName": "demo",
            "items": [
                {"kind": "struct", "name": "X", "path": "demo::m"},
                {"kind": "mod", "name": ""},
            ],
        })
        assert _paths(_engine(idx).search("demo")) == ["demo"]


class TestQualifiedSearch:

    def test_module_qualifier(self, esil_index):
        hits = _engine(esil_index).search("esil::parser")
        assert _paths(hits)[0] == "radeco::frontend::esil::Parser"

    def test_parent_qualifier(self, esil_index):
        hits = _engine(esil_index).search("Arity.clone")
        assert _paths(hits) == ["radeco::frontend::esil::Arity::clone"]

    def test_partial_qualifier(self, esil_index):
        hits = _engine(esil_index).search("front::arity::zero")
        assert _paths(hits) == ["radeco::frontend::esil::Arity::Zero"]

    def test_qualifiers_must_match_in_order(self, esil_index):
        assert _engine(esil_index).search("esil::frontend::parser") == []

    def test_mismatched_qualifier_disqualifies(self, esil_index):
        assert _engine(esil_index).search("backend::parser") == []

    def test_qualifier_restricts_same_name(self, esil_index):
        hits = _engine(esil_index).search("operator::new")
        assert _paths(hits) == ["radeco::frontend::esil::Operator::new"]


class TestEditDistanceFallback:

    def test_typo_uses_edit_distance(self, esil_index):
        hits = _engine(esil_index).search("parsr")
        assert _paths(hits) == [
            "radeco::frontend::esil::Parser",
            "radeco::frontend::esil::Parser::parse",
        ]
        assert hits[0].score == hits[1].score
        assert hits[0].score < SCORE_PARENT

    def test_not_used_when_direct_match_exists(self, esil_index):
        hits = _engine(esil_index).search("zero")
        assert _paths(hits) == ["radeco::frontend::esil::Arity::Zero"]

    def test_disabled(self, esil_index):
        assert _engine(esil_index, max_edit_distance=0).search("parsr") == []

    def test_out_of_scope_match_does_not_block_fallback(self):
        idx = load_crate_index({
            "crateName": "d",
            "items": [
                {"kind": "struct", "name": "Parser", "path": "d::a"},
                {"kind": "struct", "name": "Parsr", "path": "d::b"},
            ],
        })
        hits = _engine(idx).search("b::parser")
        assert _paths(hits) == ["d::b::Parsr"]
        assert hits[0].score < SCORE_PARENT


class TestSignatureSearch:

    def test_demo_signature(self, demo_index):
        hits = _engine(demo_index).search("str -> Vec")
        assert _paths(hits) == ["demo::Parser::parse"]

    def test_full_match_outranks_partial(self, esil_index):
        hits = _engine(esil_index).search("parser -> vec")
        assert hits[0].path == "radeco::frontend::esil::Parser::emit_insts"
        assert all(hit.score < hits[0].score for hit in hits[1:])
        assert set(_paths(hits[1:])) == {
            "radeco::frontend::esil::Parser::new",
            "radeco::frontend::esil::Parser::parse",
        }

    def test_inputs_are_order_insensitive(self, esil_index):
        engine = _engine(esil_index)
        forward = engine.search("parser, str ->")
        backward = engine.search("str, parser ->")
        assert _paths(forward) == _paths(backward)
        assert forward[0].path == "radeco::frontend::esil::Parser::parse"

    def test_partial_matches_ranked_by_kind_then_path(self, esil_index):
        hits = _engine(esil_index).search("str -> vec")
        assert _paths(hits) == [
            "radeco::frontend::esil::Operator::new",
            "radeco::frontend::esil::Parser::emit_insts",
            "radeco::frontend::esil::Parser::parse",
        ]

    def test_items_without_signature_never_match(self, esil_index):
        hits = _engine(esil_index).search("-> arity")
        assert all(hit.signature is not None for hit in hits)
        assert _paths(hits) == ["radeco::frontend::esil::Arity::clone"]


class TestFiltersAndLimits:

    def test_limit(self, esil_index):
        hits = _engine(esil_index).search("parser", SearchOptions(limit=2))
        assert len(hits) == 2

    def test_zero_limit(self, esil_index):
        assert _engine(esil_index).search("parser", SearchOptions(limit=0)) == []

    def test_kinds_option(self, esil_index):
        hits = _engine(esil_index).search("parser", SearchOptions.create(kinds=["method"]))
        assert {hit.kind for hit in hits} == {ItemKind.METHOD}

    def test_kind_prefix(self, esil_index):
        hits = _engine(esil_index).search("struct:pars")
        assert _paths(hits) == ["radeco::frontend::esil::Parser"]

    def test_prefix_and_option_intersect(self, esil_index):
        opts = SearchOptions.create(kinds=["struct"])
        assert _engine(esil_index).search("method:parse", opts) == []


class TestResultIntegrity:

    def test_duplicates_removed(self):
        idx = load_crate_index({
            "crateName": "radeco",
            "items": [
                [6, "Declaration", "radeco::backend::scf", "", None, None],
                [6, "Declaration", "", "", None, None],
                [6, "Declaration", "", "", None, None],
            ],
        })
        hits = _engine(idx).search("declaration")
        assert _paths(hits) == ["radeco::backend::scf::Declaration"]

    def test_dangling_parent_becomes_error_entry(self):
        broken = CrateIndex(
            crate_name="broken",
            items=(
                MemberItem(kind=ItemKind.VARIANT, name="Ghost", module_path=("broken",), parent=5),
                DefinitionItem(kind=ItemKind.STRUCT, name="GhostTown", module_path=("broken",)),
            ),
            paths=(PathEntry(kind=ItemKind.ENUM, name="Haunt"),),
        )
        hits = _engine(broken).search("ghost")
        assert len(hits) == 2
        failure, valid = hits
        assert failure.ok is False
        assert "Dangling parent index" in failure.error
        assert failure.path == "broken::Ghost"
        assert valid.ok is True
        assert valid.path == "broken::GhostTown"

    def test_determinism(self, engine):
        for query in ("parser", "new", "str -> vec", "parsr", "esil::p"):
            assert engine.search(query) == engine.search(query)

    def test_results_span_crates(self, engine):
        hits = engine.search("parser")
        assert {hit.crate for hit in hits} == {"demo", "radeco"}
        assert _paths(hits)[:2] == ["demo::Parser", "radeco::frontend::esil::Parser"]
