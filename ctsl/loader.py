# ctsl/loader.py
"""
CTSL loader: parse tree → declarations → :class:`AnalysisUnit`.

Loading happens in two steps.  :class:`CTSLDeclBuilder` turns the
Parsimonious parse tree into plain declaration records without judging
them; :func:`assemble_unit` then binds qualifiers against the hierarchy,
builds the reference store and the constraint list, and reports semantic
errors with their source position.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.expressions import Literal, Regex
from parsimonious.nodes import NodeVisitor

from cryptotype_shims import (
    Constraint,
    CryptoTypeError,
    DuplicateReferenceError,
    ExtractionResult,
    FailureStatus,
    QualifierHierarchy,
    QualifierTag,
    Reference,
    ReferenceStore,
    RefKind,
    StaticSeverityPolicy,
    extract,
    jcrypt_hierarchy,
)

from .errors import (
    CtslError,
    CtslIOError,
    CtslSemanticError,
    CtslSyntaxError,
    ErrorCode,
    SourceSpan,
)
from .grammar import GRAMMAR

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — DECLARATION RECORDS
# ═══════════════════════════════════════════════════════════════════

@dataclass
class HierarchyDecl:
    offset: int
    order: List[Tuple[str, int]] = field(default_factory=list)
    edges: List[Tuple[str, str, int]] = field(default_factory=list)
    baseline: Optional[Tuple[str, int]] = None
    order_seen: bool = False


@dataclass
class RefDecl:
    offset: int
    identifier: str
    kind: str
    target: Optional[str]
    qualifiers: List[Tuple[str, int]]
    options: List[Tuple[str, Any, int]]


@dataclass
class ConstraintDecl:
    offset: int
    left: str
    right: str
    pos: int
    severity: Optional[str]
    label: str


@dataclass
class AnalysisUnit:
    """One loaded analysis unit, ready for the extraction pass."""
    store: ReferenceStore
    constraints: List[Constraint]
    hierarchy: QualifierHierarchy
    policy: StaticSeverityPolicy
    source: str = "<string>"

    def run(self, out: Optional[TextIO] = None) -> ExtractionResult:
        return extract(self.store, self.constraints, self.hierarchy,
                       self.policy, out=out)


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE VISITOR
# ═══════════════════════════════════════════════════════════════════

class CTSLDeclBuilder(NodeVisitor):
    """Transforms the Parsimonious parse tree into declaration records."""

    unwrapped_exceptions = (CtslError,)

    def generic_visit(self, node, visited_children):
        # leaves stay nodes; sequences and repetitions become lists
        if isinstance(node.expr, (Literal, Regex)):
            return node
        return visited_children

    def visit_unit(self, node, visited_children):
        _, items = visited_children
        return list(items)

    def visit_item(self, node, visited_children):
        return visited_children[0]

    # ─────────────────────────────────────────────────────────────
    # Hierarchy
    # ─────────────────────────────────────────────────────────────

    def visit_hierarchy_block(self, node, visited_children):
        _, _, _, _, statements, _, _ = visited_children
        decl = HierarchyDecl(offset=node.start)
        for kind, payload in statements:
            if kind == "order":
                decl.order.extend(payload)
                decl.order_seen = True
            elif kind == "subtype":
                decl.edges.append(payload)
            else:
                decl.baseline = payload
        return decl

    def visit_hierarchy_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_order_stmt(self, node, visited_children):
        _, _, quals, _, _ = visited_children
        return ("order", quals)

    def visit_subtype_stmt(self, node, visited_children):
        _, _, lo, _, _, hi, _, _ = visited_children
        return ("subtype", (lo[0], hi[0], lo[1]))

    def visit_baseline_stmt(self, node, visited_children):
        _, _, qual, _, _ = visited_children
        return ("baseline", qual)

    # ─────────────────────────────────────────────────────────────
    # References
    # ─────────────────────────────────────────────────────────────

    def visit_ref_decl(self, node, visited_children):
        _, _, identifier, _, _, (kind, target), quals, options, _, _ = visited_children
        return RefDecl(
            offset=node.start,
            identifier=identifier,
            kind=kind,
            target=target,
            qualifiers=quals,
            options=list(options),
        )

    def visit_ref_kind(self, node, visited_children):
        return visited_children[0]

    def visit_adapt_kind(self, node, visited_children):
        word, _, _, _, target, _, _ = visited_children
        return (word, target)

    def visit_adapt_word(self, node, visited_children):
        return node.text

    def visit_simple_kind(self, node, visited_children):
        word, _ = visited_children
        return (word.text, None)

    def visit_qual_set(self, node, visited_children):
        _, _, quals, _, _ = visited_children
        return quals[0] if quals else []

    def visit_qual_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [q for _, _, q in rest]

    def visit_ref_option(self, node, visited_children):
        return visited_children[0]

    def visit_crypt_option(self, node, visited_children):
        _, _, qual = visited_children
        return ("crypt", qual[0], qual[1])

    def visit_name_option(self, node, visited_children):
        _, _, text = visited_children
        return ("name", text, node.start)

    def visit_element_option(self, node, visited_children):
        _, _, identifier = visited_children
        return ("element", identifier, node.start)

    # ─────────────────────────────────────────────────────────────
    # Constraints
    # ─────────────────────────────────────────────────────────────

    def visit_constraint_decl(self, node, visited_children):
        (_, _, left, _, _, right, _, _, pos,
         severity, label, _, _) = visited_children
        return ConstraintDecl(
            offset=node.start,
            left=left,
            right=right,
            pos=pos,
            severity=severity[0] if severity else None,
            label=label[0] if label else "",
        )

    def visit_severity(self, node, visited_children):
        word, _ = visited_children
        return word.text

    # ─────────────────────────────────────────────────────────────
    # Lexical
    # ─────────────────────────────────────────────────────────────

    def visit_qualifier(self, node, visited_children):
        word, _ = visited_children
        return (word.text, node.start)

    def visit_identifier(self, node, visited_children):
        word, _ = visited_children
        return word.text

    def visit_integer(self, node, visited_children):
        digits, _ = visited_children
        return int(digits.text)

    def visit_string(self, node, visited_children):
        literal, _ = visited_children
        return literal.text[1:-1]


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — ASSEMBLY
# ═══════════════════════════════════════════════════════════════════

_KINDS = {
    "variable": RefKind.VARIABLE,
    "parameter": RefKind.PARAMETER,
    "equal_null": RefKind.EQUAL_NULL,
    "other": RefKind.OTHER,
    "adapt": RefKind.ADAPT,
    "method_adapt": RefKind.METHOD_ADAPT,
}


class _Assembler:
    def __init__(self, text: str, source: str):
        self.text = text
        self.source = source

    def span(self, offset: int) -> SourceSpan:
        return SourceSpan.from_offset(self.text, offset, self.source)

    def fail(self, message: str, code: ErrorCode, offset: int, hint: str = ""):
        raise CtslSemanticError(message, code=code, span=self.span(offset),
                                hint=hint)

    def hierarchy(self, decls: List[HierarchyDecl]) -> QualifierHierarchy:
        if not decls:
            return jcrypt_hierarchy()
        if len(decls) > 1:
            self.fail("hierarchy declared more than once",
                      ErrorCode.DUPLICATE_HIERARCHY, decls[1].offset)
        decl = decls[0]
        if not decl.order_seen or not decl.order:
            self.fail("hierarchy has no 'order' statement",
                      ErrorCode.MISSING_ORDER, decl.offset)
        if decl.baseline is None:
            self.fail("hierarchy has no 'baseline' statement",
                      ErrorCode.MISSING_BASELINE, decl.offset,
                      hint="add e.g. 'baseline CLEAR;'")
        names = [name for name, _ in decl.order]
        known = set(names)
        for lo, hi, offset in decl.edges:
            for name in (lo, hi):
                if name not in known:
                    self.fail(f"unknown qualifier '{name}' in subtype edge",
                              ErrorCode.UNKNOWN_QUALIFIER, offset)
        baseline, offset = decl.baseline
        if baseline not in known:
            self.fail(f"unknown baseline qualifier '{baseline}'",
                      ErrorCode.UNKNOWN_QUALIFIER, offset)
        try:
            return QualifierHierarchy(
                order=names,
                edges=[(lo, hi) for lo, hi, _ in decl.edges],
                baseline=baseline,
            )
        except CryptoTypeError as exc:
            raise CtslSemanticError(str(exc), code=ErrorCode.INVALID_HIERARCHY,
                                    span=self.span(decl.offset)) from exc

    def qualifier(self, hierarchy: QualifierHierarchy, name: str,
                  offset: int) -> QualifierTag:
        if name not in hierarchy:
            known = ", ".join(str(t) for t in hierarchy.order)
            self.fail(f"unknown qualifier '{name}'", ErrorCode.UNKNOWN_QUALIFIER,
                      offset, hint=f"declared qualifiers: {known}")
        return hierarchy[name]

    def reference(self, decl: RefDecl, store: ReferenceStore,
                  hierarchy: QualifierHierarchy) -> Reference:
        if decl.identifier in store:
            self.fail(f"reference '{decl.identifier}' declared twice",
                      ErrorCode.DUPLICATE_REFERENCE, decl.offset)
        kind = _KINDS[decl.kind]
        target = None
        if decl.target is not None:
            if decl.target not in store:
                self.fail(f"adapt target '{decl.target}' is not declared",
                          ErrorCode.UNKNOWN_REFERENCE, decl.offset,
                          hint="declare the adapted reference first")
            target = store[decl.target]

        options: Dict[str, Any] = {}
        for key, value, offset in decl.options:
            if key in options:
                self.fail(f"option '{key}' given twice for '{decl.identifier}'",
                          ErrorCode.DUPLICATE_OPTION, offset)
            if key == "crypt":
                value = self.qualifier(hierarchy, value, offset)
            options[key] = value

        return Reference(
            identifier=decl.identifier,
            kind=kind,
            name=options.get("name", ""),
            candidates={self.qualifier(hierarchy, name, offset)
                        for name, offset in decl.qualifiers},
            decl=target,
            element=options.get("element"),
            crypt_type=options.get("crypt"),
        )

    def constraint(self, decl: ConstraintDecl, store: ReferenceStore) -> Constraint:
        for identifier in (decl.left, decl.right):
            if identifier not in store:
                self.fail(f"unknown reference '{identifier}'",
                          ErrorCode.UNKNOWN_REFERENCE, decl.offset)
        return Constraint(decl.left, decl.right, decl.pos, decl.label)


def assemble_unit(decls: List[Any], text: str, source: str = "<string>") -> AnalysisUnit:
    """Bind declaration records into an :class:`AnalysisUnit`."""
    asm = _Assembler(text, source)
    hierarchy = asm.hierarchy([d for d in decls if isinstance(d, HierarchyDecl)])

    store = ReferenceStore()
    constraints: List[Constraint] = []
    policy = StaticSeverityPolicy()
    for decl in decls:
        if isinstance(decl, RefDecl):
            ref = asm.reference(decl, store, hierarchy)
            try:
                store.add(ref)
            except DuplicateReferenceError as exc:
                asm.fail(str(exc), ErrorCode.DUPLICATE_REFERENCE, decl.offset)
        elif isinstance(decl, ConstraintDecl):
            constraint = asm.constraint(decl, store)
            constraints.append(constraint)
            if decl.severity is not None:
                policy.set_status(constraint, FailureStatus(decl.severity))

    logger.info("Loaded %s: %d reference(s), %d constraint(s)",
                source, len(store), len(constraints))
    return AnalysisUnit(store=store, constraints=constraints,
                        hierarchy=hierarchy, policy=policy, source=source)


# ═══════════════════════════════════════════════════════════════════
#  PART 4 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def parse_decls(text: str, source: str = "<string>") -> List[Any]:
    """Parse *text* into declaration records (no semantic checks)."""
    try:
        tree = GRAMMAR.parse(text)
    except IncompleteParseError as exc:
        span = SourceSpan.from_offset(text, exc.pos, source)
        raise CtslSyntaxError(
            f"unexpected input {text[exc.pos:exc.pos + 20]!r}",
            code=ErrorCode.INCOMPLETE_PARSE, span=span,
            got=text[exc.pos:exc.pos + 20]) from exc
    except ParseError as exc:
        span = SourceSpan.from_offset(text, exc.pos, source)
        raise CtslSyntaxError(
            f"cannot parse {text[exc.pos:exc.pos + 20]!r}", span=span,
            got=text[exc.pos:exc.pos + 20]) from exc
    return CTSLDeclBuilder().visit(tree)


def loads(text: str, source: str = "<string>") -> AnalysisUnit:
    """Load an analysis unit from CTSL source text."""
    return assemble_unit(parse_decls(text, source), text, source)


def load_unit(path: Union[str, Path]) -> AnalysisUnit:
    """Load an analysis unit from a ``.ctsl`` file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise CtslIOError(
            f"unit is not valid UTF-8: {exc.reason} at byte {exc.start}",
            span=SourceSpan(file=str(p)),
            hint="CTSL units must be UTF-8 text") from exc
    except OSError as exc:
        raise CtslIOError(f"cannot read unit: {exc.strerror or exc}",
                          span=SourceSpan(file=str(p))) from exc
    return loads(text, source=str(p))
