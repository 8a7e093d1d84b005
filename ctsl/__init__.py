"""
ctsl — CryptoType Specification Language
========================================

A small text format describing one analysis unit for the typing
extractor of :mod:`cryptotype_shims` (qualifier hierarchy, references,
constraints), its Parsimonious-based loader, and the ``ctsl`` command-line
tool.
"""

from __future__ import annotations

from .errors import (
    CtslError,
    CtslIOError,
    CtslSemanticError,
    CtslSyntaxError,
    ErrorCode,
    SourceSpan,
)
from .loader import AnalysisUnit, load_unit, loads, parse_decls

__version__ = "0.2.0"

__all__ = [
    "AnalysisUnit",
    "CtslError",
    "CtslIOError",
    "CtslSemanticError",
    "CtslSyntaxError",
    "ErrorCode",
    "SourceSpan",
    "load_unit",
    "loads",
    "parse_decls",
    "__version__",
]
