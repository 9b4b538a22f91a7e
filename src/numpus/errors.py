"""
Numpus exceptions, diagnostics and the evaluation error taxonomy.

Parse failures are raised internally as exceptions carrying a Diagnostic
and converted to data at the public entry points. Evaluation failures are
raised internally as EvaluationError and returned to callers as error
results classified by ErrorKind.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


class ErrorKind(Enum):
    """Classification of an error carried by a calculation result."""
    PARSE = "parse"
    UNDEFINED_VARIABLE = "undefined_variable"
    UNDEFINED_FUNCTION = "undefined_function"
    ARGUMENT_COUNT = "argument_count"
    DUPLICATE_PARAMETER = "duplicate_parameter"
    UNIT_MISMATCH = "unit_mismatch"
    UNSUPPORTED_OPERATOR = "unsupported_operator"
    UNRECOGNIZED_UNIT = "unrecognized_unit"
    DIVISION_BY_ZERO = "division_by_zero"
    DOMAIN = "domain"
    INVALID_RESULT = "invalid_result"
    RECURSION_LIMIT = "recursion_limit"
    UNSUPPORTED_NODE = "unsupported_node"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def summary(self) -> str:
        """One-line message with the column, as reported by ParseResult."""
        return f"{self.message} (column {self.span.start.column})"


class NumpusError(Exception):
    """Base exception for parse errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(NumpusError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(NumpusError):
    """Error during parsing (E1xx)."""
    pass


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Invalid number literal."""
    diag = Diagnostic(
        code="E002",
        message=f"invalid number literal '{text}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E102: Unexpected end of input."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of input, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_trailing_input(found: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Input left over after a complete statement."""
    diag = Diagnostic(
        code="E103",
        message=f"unexpected {found} after end of statement",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["each line holds exactly one expression, assignment or function definition"],
    )
    return ParserError(diag)


def error_nesting_too_deep(span: SourceSpan, source_line: str = None) -> ParserError:
    """E104: Expression nested beyond what the parser can follow."""
    diag = Diagnostic(
        code="E104",
        message="expression is nested too deeply",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


class EvaluationError(Exception):
    """
    Raised inside the evaluator when a statement cannot produce a value.

    Never escapes Evaluator.evaluate(); it is converted to an error
    CalculationResult carrying the same message and kind.
    """

    def __init__(self, message: str, kind: ErrorKind):
        self.message = message
        self.kind = kind
        super().__init__(message)
