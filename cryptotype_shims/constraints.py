"""
cryptotype_shims/constraints.py
═══════════════════════════════

Subtyping constraints between references and the severity policy that
decides whether a failed constraint is an error or a tolerated warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol, runtime_checkable


class FailureStatus(Enum):
    """Severity attached to a constraint by the policy collaborator."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Constraint:
    """
    ``left <: right`` required at source position ``pos``.

    ``left`` and ``right`` are reference identifiers; the references
    themselves live in the :class:`~cryptotype_shims.references.ReferenceStore`.
    A position of ``0`` marks a synthetic constraint with no location.
    """
    left: str
    right: str
    pos: int = 0
    label: str = ""

    def __post_init__(self) -> None:
        if self.pos < 0:
            raise ValueError(f"constraint position must be >= 0, got {self.pos}")

    @property
    def is_synthetic(self) -> bool:
        return self.pos == 0

    def __str__(self) -> str:
        text = f"{self.left} <: {self.right} @ {self.pos}"
        if self.label:
            text += f" [{self.label}]"
        return text


@runtime_checkable
class SeverityPolicy(Protocol):
    def failure_status(self, constraint: Constraint) -> FailureStatus: ...


class StaticSeverityPolicy:
    """
    Severity policy backed by a table of per-constraint overrides.

    Constraints without an override get ``default``.
    """

    def __init__(
        self,
        default: FailureStatus = FailureStatus.ERROR,
        overrides: Optional[Dict[Constraint, FailureStatus]] = None,
    ):
        self.default = default
        self._overrides: Dict[Constraint, FailureStatus] = dict(overrides or {})

    def set_status(self, constraint: Constraint, status: FailureStatus) -> None:
        self._overrides[constraint] = status

    def tolerate(self, constraints: Iterable[Constraint]) -> None:
        """Downgrade every constraint in *constraints* to WARNING."""
        for c in constraints:
            self._overrides[c] = FailureStatus.WARNING

    def failure_status(self, constraint: Constraint) -> FailureStatus:
        return self._overrides.get(constraint, self.default)

    def __repr__(self) -> str:
        return (f"StaticSeverityPolicy(default={self.default.name}, "
                f"{len(self._overrides)} override(s))")
