# tests/test_report.py
"""
Tests for violation and ledger rendering.
"""

import json

import pytest

from cryptotype_shims import (
    Constraint,
    ReportFormat,
    StaticSeverityPolicy,
    extract_quietly,
    format_ledger_json,
    format_report,
    format_violations_json,
    format_violations_text,
)

from helpers import make_ref, make_store


@pytest.fixture
def violated(levels):
    store = make_store(make_ref(levels, "x", "HIGH", name="secret"),
                       make_ref(levels, "y", "LOW"))
    constraints = [Constraint("x", "y", 14, "assignment")]
    result = extract_quietly(store, constraints, levels, StaticSeverityPolicy())
    return store, result


class TestTextReport:

    def test_no_violations(self):
        assert format_violations_text([]) == "No subtype violations detected.\n"

    def test_lists_resolved_sides(self, violated):
        store, result = violated
        text = format_violations_text(result.violations, store)
        assert "[1] line 14: secret:HIGH is not a subtype of y:LOW" in text
        assert "note: assignment" in text
        assert text.rstrip().endswith("--- 1 violation(s) ---")

    def test_without_store_uses_identifiers(self):
        text = format_violations_text([Constraint("a", "b", 0)])
        assert "synthetic: a is not a subtype of b" in text

    def test_report_counts_conversions(self, violated):
        store, result = violated
        text = format_report(result, ReportFormat.TEXT, store)
        assert text.endswith("1 conversion(s) recorded.\n")


class TestJsonReport:

    def test_violations_json(self, violated):
        store, result = violated
        doc = json.loads(format_violations_json(result.violations, store))
        assert doc["violation_count"] == 1
        assert doc["violations"][0] == {
            "pos": 14, "left": "x", "right": "y", "label": "assignment",
            "left_qualifier": "HIGH", "right_qualifier": "LOW"}

    def test_full_report_json(self, violated):
        store, result = violated
        doc = json.loads(format_report(result, ReportFormat.JSON, store))
        assert doc["constraints_checked"] == 1
        assert doc["conversions"] == {
            "x": [{"pos": 14, "from_type": "HIGH", "to_type": "LOW"}]}

    def test_ledger_json(self, violated):
        _, result = violated
        doc = json.loads(format_ledger_json(result))
        assert doc["conversion_count"] == 1
        assert list(doc["conversions"]) == ["x"]
