# tests/test_ctsl_grammar.py
"""
Tests that the CTSL PEG grammar is well-formed and accepts the unit
constructs at the grammar level (before the visitor runs).
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.grammar import Grammar

from ctsl.grammar import CTSL_GRAMMAR


@pytest.fixture(scope="module")
def grammar():
    """Compile the grammar once per module."""
    return Grammar(CTSL_GRAMMAR)


class TestGrammarWellFormed:

    def test_grammar_compiles(self, grammar):
        assert grammar is not None
        assert "unit" in grammar

    def test_key_rules_present(self, grammar):
        for rule in ("hierarchy_block", "ref_decl", "constraint_decl",
                     "qual_set", "identifier", "qualifier"):
            assert rule in grammar, f"Rule {rule!r} missing"


class TestGrammarAtoms:

    def test_empty_input(self, grammar):
        assert grammar.parse("") is not None

    def test_comments_and_whitespace(self, grammar):
        grammar.parse("# nothing here\n\n   # still nothing\n")

    def test_identifiers(self, grammar):
        for name in ("x", "Foo.bar", "v$12", "$tmp", "a.b.c"):
            tree = grammar["identifier"].parse(name)
            assert tree.text == name

    def test_hash_starts_comment_after_identifier(self, grammar):
        tree = grammar["identifier"].parse("p# trailing note")
        assert tree.children[0].text == "p"

    def test_integer(self, grammar):
        assert grammar["integer"].parse("42").text == "42"

    def test_string(self, grammar):
        grammar["string"].parse('"a label"')


class TestGrammarDeclarations:

    def test_hierarchy_block(self, grammar):
        grammar["hierarchy_block"].parse(
            "hierarchy { order A, B; subtype B <: A; baseline B; }")

    @pytest.mark.parametrize("decl", [
        "ref x: variable { RND, CLEAR };",
        "ref p: parameter { };",
        "ref n: equal_null {};",
        "ref a: adapt(x) { DET } crypt DET;",
        "ref m: method_adapt(f) { OPE } name \"call\";",
        "ref e: other { CLEAR } element p name \"e\";",
    ])
    def test_ref_decl(self, grammar, decl):
        grammar["ref_decl"].parse(decl)

    @pytest.mark.parametrize("decl", [
        "constraint x <: y @ 5;",
        "constraint x <: y @ 0 warning;",
        "constraint x <: y @ 12 error \"call arg\";",
        'constraint x<:y@3 "no spaces";',
    ])
    def test_constraint_decl(self, grammar, decl):
        grammar["constraint_decl"].parse(decl)

    def test_unknown_kind_rejected(self, grammar):
        with pytest.raises(ParseError):
            grammar["ref_decl"].parse("ref x: global { A };")

    def test_missing_position_rejected(self, grammar):
        with pytest.raises(ParseError):
            grammar["constraint_decl"].parse("constraint x <: y;")

    def test_trailing_garbage_rejected(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("ref x: variable { A }; ???")
