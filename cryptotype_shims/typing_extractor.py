"""
cryptotype_shims/typing_extractor.py
════════════════════════════════════

Maximal typing extraction, concrete type checking and conversion
extraction.

Pipeline
────────

    ┌────────────────────┐
    │  Maximal assigner   │   every reference with candidates → one qualifier
    └─────────┬──────────┘
              │  (must finish over the whole store)
              ▼
    ┌────────────────────┐   for each constraint, in iteration order:
    │  type_check         │     verify_constraint  → violation list
    │                     │     extract_conversion → conversion ledger
    └────────────────────┘

Usage
─────

    from cryptotype_shims import extract, jcrypt_hierarchy, StaticSeverityPolicy

    result = extract(store, constraints, jcrypt_hierarchy(),
                     StaticSeverityPolicy())
    for c in result.violations:
        print("violated:", c)
    result.ledger.by_identifier      # conversions per reference
"""

from __future__ import annotations

import functools
import io
import logging
import sys
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, TextIO

from .constraints import Constraint, FailureStatus, SeverityPolicy
from .conversions import Conversion, ConversionLedger
from .qualifiers import QualifierOracle
from .references import Reference, RefKind, ReferenceStore

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — EXTRACTION SESSION
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ExtractionSession:
    """
    Everything one extraction pass reads and writes.

    Attributes:
        store: References of the analysis unit
        constraints: Ordered constraint collection
        hierarchy: Qualifier oracle (subtype test, comparator, baseline)
        policy: Severity policy deciding ERROR vs WARNING per constraint
        ledger: Conversion ledger filled by the extractor
        out: Stream receiving the conversion diagnostic lines
        violations: Constraints found violated so far
        diagnostics: Every line written to ``out``, in order
    """
    store: ReferenceStore
    constraints: Sequence[Constraint]
    hierarchy: QualifierOracle
    policy: SeverityPolicy
    ledger: ConversionLedger = field(default_factory=ConversionLedger)
    out: Optional[TextIO] = None
    violations: List[Constraint] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.constraints = list(self.constraints)
        if self.out is None:
            self.out = sys.stdout

    def emit(self, line: str) -> None:
        self.diagnostics.append(line)
        print(line, file=self.out)


@dataclass
class ExtractionResult:
    """Outcome of :func:`extract`."""
    violations: List[Constraint]
    ledger: ConversionLedger
    diagnostics: List[str]
    references_considered: int = 0
    constraints_checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def error_count(self) -> int:
        return len(self.violations)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — MAXIMAL ASSIGNER
# ═══════════════════════════════════════════════════════════════════════════

def assign_maximal_qualifiers(
    store: ReferenceStore,
    hierarchy: QualifierOracle,
) -> int:
    """Collapse every non-empty candidate set to its maximal qualifier.

    References without candidates stay unresolved.  Returns the number of
    references looked at.
    """
    references = list(store.annotated_references().values())
    logger.info("Picking up the maximal qualifier for %d variables...",
                len(references))
    key = functools.cmp_to_key(hierarchy.comparator())
    for ref in references:
        if not ref.candidates:
            continue
        ordered = sorted(ref.candidates, key=key)
        ref.resolve(ordered[0])
    return len(references)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — CONSTRAINT VERIFIER
# ═══════════════════════════════════════════════════════════════════════════

def verify_constraint(session: ExtractionSession, constraint: Constraint) -> bool:
    """Return True when *constraint* is an ERROR-severity subtype violation."""
    left = session.store.get(constraint.left)
    right = session.store.get(constraint.right)
    if left.resolved is None or right.resolved is None:
        return False
    if session.hierarchy.is_subtype(left.resolved, right.resolved):
        return False
    status = session.policy.failure_status(constraint)
    if status is not FailureStatus.ERROR:
        logger.debug("Tolerating %s (%s <: %s) as %s", constraint,
                     left.resolved, right.resolved, status.name)
        return False
    return True


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — CONVERSION EXTRACTOR
# ═══════════════════════════════════════════════════════════════════════════

def _record(
    session: ExtractionSession,
    constraint: Constraint,
    left: Reference,
    attributed: str,
    conversion: Conversion,
) -> None:
    key = (constraint.pos, left.identifier)
    if session.ledger.record(attributed, conversion, key, constraint):
        session.emit(str(constraint))
        session.emit(f"Line {constraint.pos}: {left.display_name} "
                     f"{conversion.from_type} => {conversion.to_type}")
    else:
        logger.debug("Conversion %s under %s not diagnosed, key %s seen",
                     conversion, attributed, key)


def extract_conversion(
    session: ExtractionSession,
    constraint: Constraint,
) -> Optional[Conversion]:
    """Record the conversion *constraint* requires, if any, and return it."""
    left = session.store.get(constraint.left)
    right = session.store.get(constraint.right)
    if (constraint.is_synthetic or left.kind is RefKind.EQUAL_NULL
            or right.kind is RefKind.EQUAL_NULL):
        return None

    baseline = session.hierarchy.baseline
    left_type = left.effective_type
    right_type = right.effective_type

    # baseline <: typed value; a parameter or another baseline needs nothing
    if (left_type == baseline and right.kind is not RefKind.METHOD_ADAPT
            and right.is_resolved):
        if right.kind is RefKind.PARAMETER:
            return None
        decl = session.store.declaration_of(right)
        if decl is not None and decl.kind is RefKind.PARAMETER:
            return None
        if right_type == baseline:
            return None
        conversion = Conversion(constraint.pos, baseline.short_name,
                                right_type.short_name)
        _record(session, constraint, left, left.identifier, conversion)
        return conversion

    if not left.is_resolved or not right.is_resolved:
        return None
    if left_type == right_type:
        return None
    conversion = Conversion(constraint.pos, left_type.short_name,
                            right_type.short_name)
    attributed = right.identifier if left.kind.is_adapt else left.identifier
    _record(session, constraint, left, attributed, conversion)
    return conversion


# ═══════════════════════════════════════════════════════════════════════════
#  PART 5 — PASS DRIVER
# ═══════════════════════════════════════════════════════════════════════════

def type_check(session: ExtractionSession) -> List[Constraint]:
    """Verify and extract conversions over every constraint, once each."""
    logger.info("Verifying the concrete typing...")
    for constraint in session.constraints:
        if verify_constraint(session, constraint):
            session.violations.append(constraint)
        extract_conversion(session, constraint)
    logger.info("Finished verifying the concrete typing. %d error(s)",
                len(session.violations))
    logger.info("Finished extracting type conversions. %d conversion(s)",
                len(session.ledger))
    return session.violations


def extract(
    store: ReferenceStore,
    constraints: Iterable[Constraint],
    hierarchy: QualifierOracle,
    policy: SeverityPolicy,
    *,
    out: Optional[TextIO] = None,
    ledger: Optional[ConversionLedger] = None,
) -> ExtractionResult:
    """Run the whole pass: maximal assignment, then :func:`type_check`."""
    session = ExtractionSession(
        store=store,
        constraints=list(constraints),
        hierarchy=hierarchy,
        policy=policy,
        ledger=ledger if ledger is not None else ConversionLedger(),
        out=out,
    )
    considered = assign_maximal_qualifiers(store, hierarchy)
    violations = type_check(session)
    return ExtractionResult(
        violations=list(violations),
        ledger=session.ledger,
        diagnostics=list(session.diagnostics),
        references_considered=considered,
        constraints_checked=len(session.constraints),
    )


def extract_quietly(
    store: ReferenceStore,
    constraints: Iterable[Constraint],
    hierarchy: QualifierOracle,
    policy: SeverityPolicy,
) -> ExtractionResult:
    """:func:`extract` with diagnostic lines captured instead of printed."""
    return extract(store, constraints, hierarchy, policy, out=io.StringIO())
