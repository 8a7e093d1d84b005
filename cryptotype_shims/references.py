"""
cryptotype_shims/references.py
══════════════════════════════

References and the reference store.

A *reference* models a program variable, parameter, expression or a
synthetic construct produced by the upstream inference pass.  Each carries
a set of candidate qualifiers that the maximal assigner later collapses to
a single resolved qualifier.

Adapt references (``RefKind.ADAPT`` / ``RefKind.METHOD_ADAPT``) represent a
use-site view of a declaration and carry that declaration in ``decl``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Set

from .errors import DuplicateReferenceError, ResolutionError, UnknownReferenceError
from .qualifiers import QualifierTag

logger = logging.getLogger(__name__)


class RefKind(Enum):
    """Discriminant for the reference variants."""
    VARIABLE = "variable"
    PARAMETER = "parameter"
    EQUAL_NULL = "equal_null"
    ADAPT = "adapt"
    METHOD_ADAPT = "method_adapt"
    OTHER = "other"

    @property
    def is_adapt(self) -> bool:
        """Both adapt flavours share the adapted-declaration payload."""
        return self in (RefKind.ADAPT, RefKind.METHOD_ADAPT)

    @property
    def is_declaration(self) -> bool:
        return self in (RefKind.VARIABLE, RefKind.PARAMETER)


@dataclass(eq=False)
class Reference:
    """
    A modeled program entity carrying candidate and resolved qualifiers.

    Attributes:
        identifier: Stable unique key
        kind: Which variant this reference is
        name: Display name used in diagnostics (defaults to identifier)
        candidates: Candidate qualifiers, mutable until resolved
        decl: Adapted declaration (adapt kinds only)
        element: Key of the underlying declaration element; declarations
                 default to their own identifier
        crypt_type: Explicit classification overriding the resolved
                    qualifier for conversion purposes
    """
    identifier: str
    kind: RefKind = RefKind.VARIABLE
    name: str = ""
    candidates: Set[QualifierTag] = field(default_factory=set)
    decl: Optional["Reference"] = None
    element: Optional[str] = None
    crypt_type: Optional[QualifierTag] = None
    _resolved: Optional[QualifierTag] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.identifier
        self.candidates = set(self.candidates)
        if self.kind.is_adapt and self.decl is None:
            raise ValueError(
                f"{self.kind.name} reference '{self.identifier}' needs a decl")
        if not self.kind.is_adapt and self.decl is not None:
            raise ValueError(
                f"only adapt references carry a decl, got {self.kind.name}")
        if self.element is None and self.kind.is_declaration:
            self.element = self.identifier

    # ─────────────────────────────────────────────────────────────────
    #  Resolution
    # ─────────────────────────────────────────────────────────────────

    @property
    def resolved(self) -> Optional[QualifierTag]:
        return self._resolved

    @property
    def is_resolved(self) -> bool:
        return self._resolved is not None

    def resolve(self, qualifier: QualifierTag) -> None:
        """Collapse the candidate set to *qualifier*.

        Resolving again to the same qualifier is a no-op; resolving to a
        different one raises :class:`ResolutionError`.
        """
        if self._resolved is not None and self._resolved != qualifier:
            raise ResolutionError(
                f"reference '{self.identifier}' already resolved to "
                f"{self._resolved}, cannot re-resolve to {qualifier}")
        self._resolved = qualifier
        self.candidates = {qualifier}

    @property
    def effective_type(self) -> Optional[QualifierTag]:
        """The explicit ``crypt_type`` if present, else the resolved qualifier."""
        if self.crypt_type is not None:
            return self.crypt_type
        return self._resolved

    @property
    def display_name(self) -> str:
        """Name shown in conversion diagnostics."""
        if self.kind.is_adapt:
            return self.decl.name
        return self.name

    def __repr__(self) -> str:
        quals = ", ".join(sorted(str(q) for q in self.candidates))
        return f"Reference({self.identifier}, {self.kind.name}, {{{quals}}})"


class ReferenceStore:
    """
    All references of one analysis unit, keyed by identifier.

    Iteration follows insertion order so the pass is reproducible.
    Declarations (variables and parameters) are additionally indexed by
    their ``element`` key for :meth:`annotated_reference`.
    """

    def __init__(self, references: Optional[Mapping[str, Reference]] = None):
        self._refs: Dict[str, Reference] = {}
        self._elements: Dict[str, Reference] = {}
        for ref in (references or {}).values():
            self.add(ref)

    def add(self, ref: Reference) -> Reference:
        if ref.identifier in self._refs:
            raise DuplicateReferenceError(
                f"reference '{ref.identifier}' already registered")
        indexed = ref.kind.is_declaration and ref.element is not None
        if indexed and ref.element in self._elements:
            owner = self._elements[ref.element]
            raise DuplicateReferenceError(
                f"element '{ref.element}' already declared by "
                f"'{owner.identifier}'")
        self._refs[ref.identifier] = ref
        if indexed:
            self._elements[ref.element] = ref
        logger.debug("Registered %r", ref)
        return ref

    def annotated_references(self) -> Mapping[str, Reference]:
        return self._refs

    def annotated_reference(self, element: str) -> Optional[Reference]:
        """Declaration reference for *element*, or None if none is known."""
        return self._elements.get(element)

    def declaration_of(self, ref: Reference) -> Optional[Reference]:
        if ref.element is None:
            return None
        return self.annotated_reference(ref.element)

    def get(self, identifier: str) -> Reference:
        try:
            return self._refs[identifier]
        except KeyError:
            raise UnknownReferenceError(identifier) from None

    def __getitem__(self, identifier: str) -> Reference:
        return self.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._refs

    def __iter__(self) -> Iterator[Reference]:
        return iter(self._refs.values())

    def __len__(self) -> int:
        return len(self._refs)

    def unresolved(self) -> list:
        return [r for r in self._refs.values() if not r.is_resolved]
