# tests/helpers.py
"""
Builders shared by the test modules.
"""

import io

from cryptotype_shims import (
    ExtractionSession,
    Reference,
    ReferenceStore,
    RefKind,
    StaticSeverityPolicy,
)


def make_ref(hierarchy, identifier, *quals, kind=RefKind.VARIABLE, **kwargs):
    """Build a reference whose candidates are looked up in *hierarchy*."""
    return Reference(
        identifier,
        kind=kind,
        candidates={hierarchy[q] for q in quals},
        **kwargs,
    )


def make_store(*refs):
    store = ReferenceStore()
    for ref in refs:
        store.add(ref)
    return store


def make_session(store, constraints, hierarchy, policy=None):
    return ExtractionSession(
        store=store,
        constraints=constraints,
        hierarchy=hierarchy,
        policy=policy or StaticSeverityPolicy(),
        out=io.StringIO(),
    )


def conversion_lines(diagnostics):
    return [line for line in diagnostics if line.startswith("Line ")]
