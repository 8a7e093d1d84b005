# tests/conftest.py
"""
Shared fixtures: small qualifier hierarchies.
"""

import pytest

from cryptotype_shims import QualifierHierarchy


@pytest.fixture
def levels():
    """HIGH > MID > LOW chain, LOW is the baseline."""
    return QualifierHierarchy(
        order=["HIGH", "MID", "LOW"],
        edges=[("LOW", "MID"), ("MID", "HIGH")],
        baseline="LOW",
    )


@pytest.fixture
def schemes():
    """CLEAR flows into either scheme; the schemes are unrelated."""
    return QualifierHierarchy(
        order=["SCHEME_X", "SCHEME_Y", "CLEAR"],
        edges=[("CLEAR", "SCHEME_X"), ("CLEAR", "SCHEME_Y")],
        baseline="CLEAR",
    )
