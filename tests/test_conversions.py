# tests/test_conversions.py
"""
Tests for the conversion ledger bookkeeping.
"""

import json

from cryptotype_shims import Constraint, Conversion, ConversionLedger


class TestConversion:

    def test_str(self):
        assert str(Conversion(4, "CLEAR", "DET")) == "4: CLEAR => DET"

    def test_to_dict(self):
        assert Conversion(4, "CLEAR", "DET").to_dict() == {
            "pos": 4, "from_type": "CLEAR", "to_type": "DET"}


class TestConversionLedger:

    def test_first_writer_wins(self):
        ledger = ConversionLedger()
        c1, c2 = Constraint("x", "y", 3), Constraint("x", "z", 3)
        assert ledger.record("x", Conversion(3, "A", "B"), (3, "x"), c1) is True
        assert ledger.record("x", Conversion(3, "A", "C"), (3, "x"), c2) is False
        assert ledger.seen == {(3, "x"): c1}
        assert ledger.conversions_for("x") == [
            Conversion(3, "A", "B"), Conversion(3, "A", "C")]

    def test_duplicates_are_kept(self):
        ledger = ConversionLedger()
        c = Constraint("x", "y", 3)
        conv = Conversion(3, "A", "B")
        ledger.record("x", conv, (3, "x"), c)
        ledger.record("x", conv, (3, "x"), c)
        assert ledger.conversions_for("x") == [conv, conv]
        assert ledger.total == 2
        assert len(ledger) == 1

    def test_key_independent_of_attribution(self):
        ledger = ConversionLedger()
        c = Constraint("a", "t", 9)
        ledger.record("t", Conversion(9, "A", "B"), (9, "a"), c)
        assert "t" in ledger
        assert "a" not in ledger
        assert (9, "a") in ledger.seen

    def test_conversions_for_unknown_is_empty(self):
        assert ConversionLedger().conversions_for("nope") == []

    def test_iteration_order(self):
        ledger = ConversionLedger()
        ledger.record("b", Conversion(1, "A", "B"), (1, "b"), Constraint("b", "x", 1))
        ledger.record("a", Conversion(2, "A", "B"), (2, "a"), Constraint("a", "x", 2))
        ledger.record("b", Conversion(3, "A", "B"), (3, "b"), Constraint("b", "x", 3))
        assert [(i, c.pos) for i, c in ledger] == [("b", 1), ("b", 3), ("a", 2)]

    def test_to_json(self):
        ledger = ConversionLedger()
        ledger.record("x", Conversion(3, "CLEAR", "OPE"), (3, "x"),
                      Constraint("x", "y", 3))
        assert json.loads(ledger.to_json()) == {
            "x": [{"pos": 3, "from_type": "CLEAR", "to_type": "OPE"}]}
