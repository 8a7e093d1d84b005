# ctsl/grammar.py
"""
CTSL PEG grammar (Parsimonious).

A CTSL file describes one analysis unit handed to the typing extractor:
an optional qualifier hierarchy, the references with their candidate
qualifiers, and the subtyping constraints in iteration order.

    hierarchy {
        order RND, DET, CLEAR;          # extremal first
        subtype CLEAR <: DET;
        subtype DET <: RND;
        baseline CLEAR;
    }
    ref x: variable { RND, CLEAR };
    ref p: parameter { CLEAR } name "param";
    ref a: adapt(x) { DET } crypt DET;
    ref e: other { CLEAR } element p;
    constraint x <: p @ 5;
    constraint a <: e @ 9 warning "field write";
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

CTSL_GRAMMAR = r'''
    unit            = _ item*

    item            = hierarchy_block / ref_decl / constraint_decl

    # ─────────────────────────────────────────────────────────────
    # Qualifier hierarchy
    # ─────────────────────────────────────────────────────────────

    hierarchy_block = kw_hierarchy _ "{" _ hierarchy_stmt* "}" _
    hierarchy_stmt  = order_stmt / subtype_stmt / baseline_stmt
    order_stmt      = kw_order _ qual_list ";" _
    subtype_stmt    = kw_subtype _ qualifier "<:" _ qualifier ";" _
    baseline_stmt   = kw_baseline _ qualifier ";" _

    # ─────────────────────────────────────────────────────────────
    # References
    # ─────────────────────────────────────────────────────────────

    ref_decl        = kw_ref _ identifier ":" _ ref_kind qual_set ref_option* ";" _
    ref_kind        = adapt_kind / simple_kind
    adapt_kind      = adapt_word _ "(" _ identifier ")" _
    adapt_word      = ~r"method_adapt\b" / ~r"adapt\b"
    simple_kind     = ~r"(variable|parameter|equal_null|other)\b" _
    qual_set        = "{" _ qual_list? "}" _
    qual_list       = qualifier ("," _ qualifier)*
    ref_option      = crypt_option / name_option / element_option
    crypt_option    = kw_crypt _ qualifier
    name_option     = kw_name _ string
    element_option  = kw_element _ identifier

    # ─────────────────────────────────────────────────────────────
    # Constraints
    # ─────────────────────────────────────────────────────────────

    constraint_decl = kw_constraint _ identifier "<:" _ identifier "@" _ integer severity? string? ";" _
    severity        = ~r"(error|warning)\b" _

    # ─────────────────────────────────────────────────────────────
    # Lexical
    # ─────────────────────────────────────────────────────────────

    kw_hierarchy    = ~r"hierarchy\b"
    kw_order        = ~r"order\b"
    kw_subtype      = ~r"subtype\b"
    kw_baseline     = ~r"baseline\b"
    kw_ref          = ~r"ref\b"
    kw_crypt        = ~r"crypt\b"
    kw_name         = ~r"name\b"
    kw_element      = ~r"element\b"
    kw_constraint   = ~r"constraint\b"

    qualifier       = ~r"[A-Za-z_][A-Za-z0-9_]*" _
    identifier      = ~r"[A-Za-z_$][A-Za-z0-9_$.]*" _
    integer         = ~r"[0-9]+" _
    string          = ~r'"[^"\n]*"' _

    _               = (~r"\s+" / comment)*
    comment         = ~r"#[^\n]*"
'''

GRAMMAR = Grammar(CTSL_GRAMMAR)
