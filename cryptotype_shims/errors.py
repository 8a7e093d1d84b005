"""
cryptotype_shims/errors.py
══════════════════════════

Exception hierarchy shared by the cryptotype-shims modules.

    CryptoTypeError (base)
    ├── HierarchyError           - malformed qualifier hierarchy
    ├── ResolutionError          - a resolved reference re-resolved differently
    ├── DuplicateReferenceError  - two references share an identifier
    └── UnknownReferenceError    - a constraint names a missing reference

Subtype violations are *not* exceptions: they are collected by the
verifier and returned to the caller.
"""

from __future__ import annotations


class CryptoTypeError(Exception):
    """Base class for all cryptotype-shims errors."""


class HierarchyError(CryptoTypeError):
    """The qualifier hierarchy is inconsistent or incomplete."""


class ResolutionError(CryptoTypeError):
    """A reference that already has a resolved qualifier was given another."""


class DuplicateReferenceError(CryptoTypeError):
    """A reference identifier was registered twice in the same store."""


class UnknownReferenceError(CryptoTypeError, KeyError):
    """A constraint refers to an identifier that is not in the store."""

    def __init__(self, identifier: str):
        super().__init__(identifier)
        self.identifier = identifier

    def __str__(self) -> str:
        return f"unknown reference '{self.identifier}'"
