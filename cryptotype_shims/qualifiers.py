"""
cryptotype_shims/qualifiers.py
══════════════════════════════

Qualifier tags and the qualifier hierarchy oracle.

The inference pass treats the lattice as an external collaborator: all it
needs is a subtype test, a total order used to pick the maximal candidate,
and the designated *baseline* qualifier (the "no scheme applied" tag).
``QualifierOracle`` captures that contract; ``QualifierHierarchy`` is the
concrete, table-driven implementation used by the CLI and the tests.

Reference lattice
─────────────────

``jcrypt_hierarchy()`` builds the encryption-scheme lattice used by the
JCrypt analysis:

                  RND
               /  |   \\
             AH   MH   DET
               \\  |    |
                \\ |   OPE
                 \\|  /
                 CLEAR

CLEAR is the baseline.  The preference order (extremal first) is
RND, AH, MH, DET, OPE, CLEAR.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Set,
    Tuple,
    runtime_checkable,
)

from .errors import HierarchyError


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — QUALIFIER TAGS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class QualifierTag:
    """
    A single qualifier of the lattice.

    Attributes:
        short_name: Canonical name used for comparison and in diagnostics
                    (e.g. ``"RND"``).
        qualified_name: Optional fully qualified spelling, display only.
    """
    short_name: str
    qualified_name: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.short_name:
            raise HierarchyError("qualifier short name must be non-empty")

    def __str__(self) -> str:
        return self.short_name

    def __repr__(self) -> str:
        return f"QualifierTag({self.short_name})"


# Comparator over qualifiers: negative when the first sorts before the second.
QualifierComparator = Callable[[QualifierTag, QualifierTag], int]


@runtime_checkable
class QualifierOracle(Protocol):
    """What the extraction pass consumes from a qualifier hierarchy."""

    @property
    def baseline(self) -> QualifierTag: ...

    def is_subtype(self, sub: QualifierTag, sup: QualifierTag) -> bool: ...

    def comparator(self) -> QualifierComparator: ...


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — TABLE-DRIVEN HIERARCHY
# ═══════════════════════════════════════════════════════════════════════════

class QualifierHierarchy:
    """
    Finite qualifier hierarchy built from a ranking and direct subtype edges.

    The subtype relation is the reflexive-transitive closure of the edges.
    The ranking doubles as the total order: qualifiers earlier in ``order``
    are more permissive and sort first, so the maximal candidate of a set is
    the first element after sorting with :meth:`comparator`.

    Usage:
        h = QualifierHierarchy(
            order=["HIGH", "LOW"],
            edges=[("LOW", "HIGH")],
            baseline="LOW",
        )
        h.is_subtype(h["LOW"], h["HIGH"])      # True
        h.maximal({h["LOW"], h["HIGH"]})       # QualifierTag(HIGH)
    """

    def __init__(
        self,
        order: Sequence[str | QualifierTag],
        edges: Iterable[Tuple[str | QualifierTag, str | QualifierTag]] = (),
        baseline: str | QualifierTag | None = None,
    ):
        if not order:
            raise HierarchyError("hierarchy needs at least one qualifier")

        self._tags: Dict[str, QualifierTag] = {}
        self._rank: Dict[QualifierTag, int] = {}
        for position, item in enumerate(order):
            tag = item if isinstance(item, QualifierTag) else QualifierTag(item)
            if tag.short_name in self._tags:
                raise HierarchyError(
                    f"qualifier {tag.short_name} ranked more than once")
            self._tags[tag.short_name] = tag
            self._rank[tag] = position

        self._supers: Dict[QualifierTag, Set[QualifierTag]] = {
            tag: set() for tag in self._rank
        }
        self._edges: List[Tuple[QualifierTag, QualifierTag]] = []
        for sub, sup in edges:
            lo, hi = self.tag(sub), self.tag(sup)
            self._supers[lo].add(hi)
            self._edges.append((lo, hi))

        if baseline is None:
            raise HierarchyError("hierarchy needs a baseline qualifier")
        self._baseline = self.tag(baseline)
        self._closure = self._close()

    # ─────────────────────────────────────────────────────────────────
    #  Construction helpers
    # ─────────────────────────────────────────────────────────────────

    def _close(self) -> Dict[QualifierTag, FrozenSet[QualifierTag]]:
        """Reflexive-transitive closure of the direct edges."""
        closure: Dict[QualifierTag, FrozenSet[QualifierTag]] = {}
        for start in self._rank:
            seen = {start}
            stack = [start]
            while stack:
                current = stack.pop()
                for nxt in self._supers[current]:
                    if nxt not in seen:
                        seen.add(nxt)
                        stack.append(nxt)
            closure[start] = frozenset(seen)
        return closure

    def tag(self, name: str | QualifierTag) -> QualifierTag:
        """Look up the tag registered under *name*."""
        key = name.short_name if isinstance(name, QualifierTag) else name
        try:
            return self._tags[key]
        except KeyError:
            raise HierarchyError(f"unknown qualifier {key}") from None

    def __getitem__(self, name: str) -> QualifierTag:
        return self.tag(name)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, QualifierTag):
            return name.short_name in self._tags
        return name in self._tags

    def __iter__(self):
        return iter(self.order)

    def __len__(self) -> int:
        return len(self._tags)

    # ─────────────────────────────────────────────────────────────────
    #  Oracle interface
    # ─────────────────────────────────────────────────────────────────

    @property
    def baseline(self) -> QualifierTag:
        return self._baseline

    @property
    def order(self) -> List[QualifierTag]:
        return sorted(self._rank, key=self._rank.__getitem__)

    @property
    def edges(self) -> List[Tuple[QualifierTag, QualifierTag]]:
        return list(self._edges)

    def is_subtype(self, sub: QualifierTag, sup: QualifierTag) -> bool:
        return self.tag(sup) in self._closure[self.tag(sub)]

    def comparator(self) -> QualifierComparator:
        rank = self._rank

        def compare(a: QualifierTag, b: QualifierTag) -> int:
            return rank[a] - rank[b]

        return compare

    def maximal(self, candidates: Iterable[QualifierTag]) -> Optional[QualifierTag]:
        """Extremal element of *candidates* under the comparator."""
        ordered = sorted(candidates, key=functools.cmp_to_key(self.comparator()))
        return ordered[0] if ordered else None

    def describe(self) -> List[str]:
        """Human-readable lines listing the order, edges and baseline."""
        lines = ["order: " + ", ".join(str(t) for t in self.order)]
        lines.extend(f"subtype: {lo} <: {hi}" for lo, hi in self._edges)
        lines.append(f"baseline: {self._baseline}")
        return lines

    def __repr__(self) -> str:
        names = ", ".join(str(t) for t in self.order)
        return f"QualifierHierarchy([{names}], baseline={self._baseline})"


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — REFERENCE LATTICE
# ═══════════════════════════════════════════════════════════════════════════

_JCRYPT_PACKAGE = "checkers.inference2.jcrypt2.quals"

JCRYPT_ORDER = ("RND", "AH", "MH", "DET", "OPE", "CLEAR")

JCRYPT_EDGES = (
    ("CLEAR", "OPE"),
    ("OPE", "DET"),
    ("DET", "RND"),
    ("CLEAR", "AH"),
    ("AH", "RND"),
    ("CLEAR", "MH"),
    ("MH", "RND"),
)


def jcrypt_hierarchy() -> QualifierHierarchy:
    """Build the default encryption-scheme lattice (baseline CLEAR)."""
    tags = [
        QualifierTag(name, f"{_JCRYPT_PACKAGE}.{name}") for name in JCRYPT_ORDER
    ]
    return QualifierHierarchy(order=tags, edges=JCRYPT_EDGES, baseline="CLEAR")
