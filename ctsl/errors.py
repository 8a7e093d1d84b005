# ctsl/errors.py
"""
CTSL Error Types

Errors raised while reading a CTSL analysis-unit file.

Error Hierarchy:
────────────────
    CtslError (base)
    ├── CtslSyntaxError    - the text does not match the grammar
    ├── CtslSemanticError  - well-formed text describing an invalid unit
    └── CtslIOError        - the unit file cannot be read as UTF-8 text

Error Codes:
────────────
Each error carries a code ``CTSL-NNNN``:
  - 1000-1999: Syntax errors
  - 2000-2999: Hierarchy errors
  - 3000-3999: Reference / constraint binding errors
  - 4000-4999: Unit file I/O errors
  - 9000-9999: Internal errors

Example Usage:
──────────────
    try:
        unit = load_unit(path)
    except CtslError as exc:
        print(exc)          # units.ctsl:4:12: error: unknown reference 'y' [CTSL-3001]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """Structured error codes for CTSL loading."""
    UNEXPECTED_INPUT = 1001
    INCOMPLETE_PARSE = 1002

    DUPLICATE_HIERARCHY = 2001
    MISSING_ORDER = 2002
    MISSING_BASELINE = 2003
    INVALID_HIERARCHY = 2004
    UNKNOWN_QUALIFIER = 2005

    UNKNOWN_REFERENCE = 3001
    DUPLICATE_REFERENCE = 3002
    DUPLICATE_OPTION = 3003

    UNREADABLE_UNIT = 4001

    INTERNAL_ERROR = 9001

    @property
    def code(self) -> str:
        return f"CTSL-{self.value:04d}"

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class SourceSpan:
    """A point in a CTSL source file (1-based line and column)."""
    file: str = ""
    line: int = 0
    column: int = 0

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "") -> "SourceSpan":
        """Translate a character offset in *text* into line/column."""
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(file=file, line=line, column=column)

    def __str__(self) -> str:
        parts = [self.file or "<string>"]
        if self.line:
            parts.append(str(self.line))
            if self.column:
                parts.append(str(self.column))
        return ":".join(parts)


class CtslError(Exception):
    """
    Base exception for all CTSL errors.

    Carries an :class:`ErrorCode`, an optional :class:`SourceSpan` and an
    optional hint, rendered GCC-style by ``str()``.
    """

    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint

    def to_gcc_format(self) -> str:
        text = f"{self.span}: error: {self.message} [{self.code}]"
        if self.hint:
            text += f"\n  hint: {self.hint}"
        return text

    def __str__(self) -> str:
        return self.to_gcc_format()


class CtslSyntaxError(CtslError):
    """The unit text does not match the CTSL grammar."""

    default_code = ErrorCode.UNEXPECTED_INPUT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        got: str = "",
        **kwargs,
    ) -> None:
        super().__init__(message, code=code, span=span, **kwargs)
        self.got = got


class CtslSemanticError(CtslError):
    """The unit parses but describes an inconsistent analysis unit."""

    default_code = ErrorCode.UNKNOWN_REFERENCE


class CtslIOError(CtslError):
    """The unit file is missing, not a regular file, or not UTF-8."""

    default_code = ErrorCode.UNREADABLE_UNIT
