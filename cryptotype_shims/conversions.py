"""
cryptotype_shims/conversions.py
═══════════════════════════════

Scheme conversions and the ledger that records them.

The ledger keeps two views:

``by_identifier``
    identifier → conversions attributed to it, in constraint iteration
    order.  Append-only; identical conversions may appear more than once.
    This is what the instrumentation phase consumes.

``seen``
    (position, left identifier) → first constraint recorded under that
    key.  Only decides whether a diagnostic line is printed; later
    constraints sharing the key are still appended to ``by_identifier``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Tuple

from .constraints import Constraint

ConversionKey = Tuple[int, str]


@dataclass(frozen=True)
class Conversion:
    """A required scheme change ``from_type => to_type`` at ``pos``."""
    pos: int
    from_type: str
    to_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.pos}: {self.from_type} => {self.to_type}"


class ConversionLedger:
    """Order-preserving, diagnostic-deduplicating record of conversions."""

    def __init__(self) -> None:
        self.by_identifier: Dict[str, List[Conversion]] = {}
        self.seen: Dict[ConversionKey, Constraint] = {}

    def record(
        self,
        identifier: str,
        conversion: Conversion,
        key: ConversionKey,
        constraint: Constraint,
    ) -> bool:
        """Append *conversion* under *identifier*.

        Returns True when *key* was not seen before, i.e. when the caller
        should emit a diagnostic line.
        """
        self.by_identifier.setdefault(identifier, []).append(conversion)
        if key in self.seen:
            return False
        self.seen[key] = constraint
        return True

    def conversions_for(self, identifier: str) -> List[Conversion]:
        return list(self.by_identifier.get(identifier, ()))

    @property
    def total(self) -> int:
        """Number of recorded conversions, duplicates included."""
        return sum(len(v) for v in self.by_identifier.values())

    def __len__(self) -> int:
        # distinct (position, left) keys, i.e. diagnosed conversions
        return len(self.seen)

    def __iter__(self) -> Iterator[Tuple[str, Conversion]]:
        for identifier, conversions in self.by_identifier.items():
            for conversion in conversions:
                yield identifier, conversion

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.by_identifier

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            identifier: [c.to_dict() for c in conversions]
            for identifier, conversions in self.by_identifier.items()
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (f"ConversionLedger({len(self.by_identifier)} reference(s), "
                f"{self.total} conversion(s))")
