# tests/test_constraints.py
"""
Tests for constraint records and the static severity policy.
"""

import pytest

from cryptotype_shims import (
    Constraint,
    FailureStatus,
    SeverityPolicy,
    StaticSeverityPolicy,
)


class TestConstraint:

    def test_position_zero_is_synthetic(self):
        assert Constraint("x", "y").is_synthetic
        assert not Constraint("x", "y", 3).is_synthetic

    def test_negative_position_rejected(self):
        with pytest.raises(ValueError):
            Constraint("x", "y", -1)

    def test_str(self):
        assert str(Constraint("x", "y", 3)) == "x <: y @ 3"
        assert str(Constraint("x", "y", 3, "call")) == "x <: y @ 3 [call]"


class TestStaticSeverityPolicy:

    def test_default_is_error(self):
        assert StaticSeverityPolicy().failure_status(
            Constraint("x", "y", 1)) is FailureStatus.ERROR

    def test_overrides(self):
        c1, c2 = Constraint("x", "y", 1), Constraint("x", "y", 2)
        policy = StaticSeverityPolicy(default=FailureStatus.WARNING)
        policy.set_status(c1, FailureStatus.ERROR)
        assert policy.failure_status(c1) is FailureStatus.ERROR
        assert policy.failure_status(c2) is FailureStatus.WARNING

    def test_tolerate(self):
        c1, c2, c3 = (Constraint("a", "b", n) for n in (1, 2, 3))
        policy = StaticSeverityPolicy()
        policy.tolerate([c1, c3])
        assert [policy.failure_status(c) for c in (c1, c2, c3)] == [
            FailureStatus.WARNING, FailureStatus.ERROR, FailureStatus.WARNING]

    def test_satisfies_protocol(self):
        assert isinstance(StaticSeverityPolicy(), SeverityPolicy)
