"""
cryptotype_shims — Typing Extraction for Encryption-Scheme Qualifier Inference
=============================================================================

This package implements the last phase of a qualifier inference pass over
encryption schemes: it picks a maximal qualifier for every reference,
verifies the collected subtyping constraints under that choice, and
extracts the scheme conversions the program needs to type-check.

Modules
-------
qualifiers
    Qualifier tags, the hierarchy oracle and the reference JCrypt lattice.
references
    References (variables, parameters, adapt views, ...) and their store.
constraints
    Subtyping constraints and the severity policy.
conversions
    Conversion records and the deduplicating conversion ledger.
typing_extractor
    Maximal assigner, constraint verifier, conversion extractor and the
    pass driver.
report
    Text/JSON rendering of violations and of the ledger.

Quick start
-----------
>>> from cryptotype_shims import (
...     Reference, ReferenceStore, Constraint, StaticSeverityPolicy,
...     extract_quietly, jcrypt_hierarchy)
>>> h = jcrypt_hierarchy()
>>> store = ReferenceStore()
>>> _ = store.add(Reference("x", candidates={h["CLEAR"]}))
>>> _ = store.add(Reference("y", candidates={h["DET"], h["OPE"]}))
>>> result = extract_quietly(store, [Constraint("x", "y", 3)], h,
...                          StaticSeverityPolicy())
>>> result.ledger.conversions_for("x")
[Conversion(pos=3, from_type='CLEAR', to_type='DET')]
"""

from __future__ import annotations

from .errors import (
    CryptoTypeError,
    DuplicateReferenceError,
    HierarchyError,
    ResolutionError,
    UnknownReferenceError,
)
from .qualifiers import (
    QualifierHierarchy,
    QualifierOracle,
    QualifierTag,
    jcrypt_hierarchy,
)
from .references import RefKind, Reference, ReferenceStore
from .constraints import (
    Constraint,
    FailureStatus,
    SeverityPolicy,
    StaticSeverityPolicy,
)
from .conversions import Conversion, ConversionLedger
from .typing_extractor import (
    ExtractionResult,
    ExtractionSession,
    assign_maximal_qualifiers,
    extract,
    extract_conversion,
    extract_quietly,
    type_check,
    verify_constraint,
)
from .report import (
    ReportFormat,
    format_ledger_json,
    format_report,
    format_violations_json,
    format_violations_text,
)

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.2.0"
__author__ = "cryptotype-shims contributors"
__license__ = "MIT"

__all__ = [
    # errors
    "CryptoTypeError",
    "DuplicateReferenceError",
    "HierarchyError",
    "ResolutionError",
    "UnknownReferenceError",
    # qualifiers
    "QualifierHierarchy",
    "QualifierOracle",
    "QualifierTag",
    "jcrypt_hierarchy",
    # references
    "RefKind",
    "Reference",
    "ReferenceStore",
    # constraints
    "Constraint",
    "FailureStatus",
    "SeverityPolicy",
    "StaticSeverityPolicy",
    # conversions
    "Conversion",
    "ConversionLedger",
    # typing_extractor
    "ExtractionResult",
    "ExtractionSession",
    "assign_maximal_qualifiers",
    "extract",
    "extract_conversion",
    "extract_quietly",
    "type_check",
    "verify_constraint",
    # report
    "ReportFormat",
    "format_ledger_json",
    "format_report",
    "format_violations_json",
    "format_violations_text",
    "__version__",
]
