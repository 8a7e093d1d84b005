"""
cryptotype_shims/report.py
══════════════════════════

Rendering of extraction results for the build-status layer: violation
reports in text or JSON, and the conversion ledger as JSON for the
instrumentation phase.
"""

from __future__ import annotations

import json
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from .constraints import Constraint
from .references import ReferenceStore
from .typing_extractor import ExtractionResult


class ReportFormat(Enum):
    """Output format for extraction reports."""
    TEXT = auto()
    JSON = auto()


def _side(store: Optional[ReferenceStore], identifier: str) -> str:
    if store is None or identifier not in store:
        return identifier
    ref = store[identifier]
    qual = ref.resolved if ref.resolved is not None else "?"
    return f"{ref.name}:{qual}"


def format_violations_text(
    violations: List[Constraint],
    store: Optional[ReferenceStore] = None,
) -> str:
    """
    Format violations as human-readable text.

    When *store* is given each side is shown with its resolved qualifier.
    """
    if not violations:
        return "No subtype violations detected.\n"

    lines = []
    for i, c in enumerate(violations, 1):
        where = f"line {c.pos}" if c.pos else "synthetic"
        lines.append(f"[{i}] {where}: {_side(store, c.left)} is not a "
                     f"subtype of {_side(store, c.right)}")
        if c.label:
            lines.append(f"    note: {c.label}")
    lines.append("")
    lines.append(f"--- {len(violations)} violation(s) ---")
    return "\n".join(lines) + "\n"


def _violation_dict(c: Constraint, store: Optional[ReferenceStore]) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"pos": c.pos, "left": c.left, "right": c.right}
    if c.label:
        entry["label"] = c.label
    if store is not None:
        for side in ("left", "right"):
            identifier = entry[side]
            if identifier in store and store[identifier].resolved is not None:
                entry[f"{side}_qualifier"] = str(store[identifier].resolved)
    return entry


def format_violations_json(
    violations: List[Constraint],
    store: Optional[ReferenceStore] = None,
) -> str:
    """Format violations as a JSON document."""
    doc = {
        "violation_count": len(violations),
        "violations": [_violation_dict(c, store) for c in violations],
    }
    return json.dumps(doc, indent=2, sort_keys=True)


def format_ledger_json(result: ExtractionResult) -> str:
    """Serialize the conversion ledger for downstream instrumentation."""
    doc = {
        "conversion_count": result.ledger.total,
        "conversions": result.ledger.to_dict(),
    }
    return json.dumps(doc, indent=2, sort_keys=True)


def format_report(
    result: ExtractionResult,
    fmt: ReportFormat = ReportFormat.TEXT,
    store: Optional[ReferenceStore] = None,
) -> str:
    """Dispatch to the formatter for *fmt*."""
    if fmt is ReportFormat.JSON:
        doc = json.loads(format_violations_json(result.violations, store))
        doc["conversions"] = result.ledger.to_dict()
        doc["constraints_checked"] = result.constraints_checked
        return json.dumps(doc, indent=2, sort_keys=True) + "\n"
    text = format_violations_text(result.violations, store)
    return text + f"{result.ledger.total} conversion(s) recorded.\n"
