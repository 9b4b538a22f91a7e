"""
Abstract Syntax Tree (AST) node definitions for Numpus.

Nodes are immutable value objects. Each one carries a source span for
diagnostics; nodes built by hand (outside the parser) report line and
column 0. Spans never take part in equality, so two parses of the same
text compare equal regardless of where the text appeared.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Any, List
from abc import ABC
from .tokens import SourceSpan, UNKNOWN_SPAN


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True)
class AstNode(ABC):
    """Base class for all AST nodes."""

    @property
    def line(self) -> int:
        """1-based source line, or 0 when unknown."""
        return self.span.start.line

    @property
    def column(self) -> int:
        """1-based source column, or 0 when unknown."""
        return self.span.start.column

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Number(AstNode):
    """A numeric literal, optionally carrying unit text (5, 2.5e3, 10 km/h)."""
    value: float
    unit: Optional[str] = None
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Variable(AstNode):
    """A variable reference."""
    name: str
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class UnaryOp(AstNode):
    """A prefix operation (+x, -x)."""
    operator: str  # "+" or "-"
    operand: AstNode
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp(AstNode):
    """A binary operation (a + b, a ^ b)."""
    left: AstNode
    operator: str  # one of + - * / ^
    right: AstNode
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionCall(AstNode):
    """A call to a builtin or user-defined function (sqrt(2), area(3, 4))."""
    name: str
    arguments: Tuple[AstNode, ...] = ()
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Comment(AstNode):
    """A comment line; text excludes the leading '#' and surrounding whitespace."""
    text: str
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class Assignment(AstNode):
    """Variable assignment (x = 42)."""
    name: str
    value: AstNode
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionDefinition(AstNode):
    """
    User function definition.

    Example:
        area(w, h) = w * h
    """
    name: str
    parameters: Tuple[str, ...]
    body: AstNode
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False, repr=False)


# =============================================================================
# Debug Printing
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented lines."""

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def generic_visit(self, node: AstNode) -> List[str]:
        self._emit(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                value.accept(PrintVisitor(self.indent + 2, self.lines))
            elif isinstance(value, tuple) and any(isinstance(item, AstNode) for item in value):
                self._emit(f"  {name}: [")
                for item in value:
                    item.accept(PrintVisitor(self.indent + 2, self.lines))
                self._emit("  ]")
            else:
                self._emit(f"  {name}: {value!r}")
        return self.lines


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    return "\n".join(node.accept(PrintVisitor()))


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
