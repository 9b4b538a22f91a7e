"""
Recursive descent parser for Numpus.

Converts a token stream into an Abstract Syntax Tree (AST). A statement is
one of, tried in this order:

    name(p1, p2, ...) = expression      function definition
    name = expression                   assignment
    expression

Documents are parsed one line at a time; lines never continue onto the
next one.
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, Callable, Tuple, TypeVar
from .tokens import Token, TokenType, SourceSpan, SourceLocation, OPERATOR_SYMBOLS
from .lexer import Lexer
from .ast import (
    AstNode, Number, Variable, Comment, Assignment, UnaryOp, BinaryOp,
    FunctionDefinition, FunctionCall,
)
from .errors import (
    NumpusError,
    ParserError,
    error_unexpected_token,
    error_unexpected_eof,
    error_trailing_input,
    error_nesting_too_deep,
)


T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a parse: either a value or an error message."""
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "ParseResult[T]":
        return cls(True, value, None)

    @classmethod
    def fail(cls, error: str) -> "ParseResult[T]":
        return cls(False, None, error or "Unknown parse error.")


class Parser:
    """
    Recursive descent parser for a single Numpus statement.

    Usage:
        parser = Parser(tokens)
        node = parser.parse_statement()

    Binary operators use precedence climbing over five distinct levels;
    a prefix sign binds tighter than all of them:
        Lowest:  -
                 +
                 /
                 *
        Highest: ^ (power, right-associative)
                 unary (+ -)

    Subtraction and addition (and likewise division and multiplication)
    do not share a level, so "10 - 4 + 3" groups as 10 - (4 + 3).
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.MINUS: 1,
        TokenType.PLUS: 2,
        TokenType.SLASH: 3,
        TokenType.STAR: 4,
        TokenType.CARET: 5,  # Power (right-associative)
    }

    # Right-associative operators
    RIGHT_ASSOCIATIVE = {TokenType.CARET}

    def __init__(self, tokens: List[Token], source: Optional[str] = None):
        self.tokens = tokens
        self.source = source  # Original line, used for diagnostics
        self.pos = 0

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span, self.source)
        raise error_unexpected_token(expected, token.describe(), token.span, self.source)

    def _expect_end(self) -> None:
        """Require that the whole statement has been consumed."""
        token = self._current()
        if token.type != TokenType.EOF:
            raise error_trailing_input(token.describe(), token.span, self.source)

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to current position."""
        # Get the previous token's end position
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def parse_statement(self) -> AstNode:
        """
        Parse one complete statement.

        Each form is attempted from the same starting position. When all of
        them fail, the error from the attempt that got furthest is raised,
        which points at the real problem rather than at the first token.
        """
        attempts: List[Callable[[], AstNode]] = [
            self._parse_function_definition,
            self._parse_assignment,
            self._parse_expression_statement,
        ]

        start = self.pos
        best_error: Optional[ParserError] = None
        for attempt in attempts:
            self.pos = start
            try:
                return attempt()
            except ParserError as e:
                if best_error is None or self._error_offset(e) >= self._error_offset(best_error):
                    best_error = e

        raise best_error

    @staticmethod
    def _error_offset(error: ParserError) -> int:
        return error.diagnostic.span.start.offset

    def _parse_function_definition(self) -> FunctionDefinition:
        """Parse 'name(params) = body'."""
        start = self._current()
        name = self._consume(TokenType.IDENTIFIER, "function name").value
        self._consume(TokenType.LPAREN, "'('")

        parameters: List[str] = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
            while self._match(TokenType.COMMA):
                parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)

        self._consume(TokenType.RPAREN, "')'")
        self._consume(TokenType.ASSIGN, "'='")
        body = self.parse_expression()
        self._expect_end()

        return FunctionDefinition(
            name=name,
            parameters=tuple(parameters),
            body=body,
            span=self._span_from(start),
        )

    def _parse_assignment(self) -> Assignment:
        """Parse 'name = value'."""
        start = self._current()
        name = self._consume(TokenType.IDENTIFIER, "variable name").value
        self._consume(TokenType.ASSIGN, "'='")
        value = self.parse_expression()
        self._expect_end()

        return Assignment(name=name, value=value, span=self._span_from(start))

    def _parse_expression_statement(self) -> AstNode:
        expr = self.parse_expression()
        self._expect_end()
        return expr

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def parse_expression(self) -> AstNode:
        """Parse an expression."""
        return self._parse_binary_expr(min(self.PRECEDENCE.values()))

    def _parse_binary_expr(self, min_precedence: int) -> AstNode:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator

            # Right-associative operators use same precedence, others use precedence + 1
            next_precedence = precedence if op_token.type in self.RIGHT_ASSOCIATIVE else precedence + 1
            right = self._parse_binary_expr(next_precedence)

            left = BinaryOp(
                left=left,
                operator=OPERATOR_SYMBOLS[op_token.type],
                right=right,
                span=SourceSpan(left.span.start, right.span.end),
            )

        return left

    def _parse_unary_expr(self) -> AstNode:
        """Parse prefix sign operators (+x, -x, --x)."""
        if self._check_any(TokenType.PLUS, TokenType.MINUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                operator=OPERATOR_SYMBOLS[op.type],
                operand=operand,
                span=SourceSpan(op.span.start, operand.span.end),
            )

        return self._parse_primary_expr()

    def _parse_primary_expr(self) -> AstNode:
        """Parse numbers, calls, variables and parenthesized expressions."""
        token = self._current()

        if token.type == TokenType.NUMBER:
            self._advance()
            return Number(value=token.value.value, unit=token.value.unit, span=token.span)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            if self._check(TokenType.LPAREN):
                return self._parse_call(token)
            return Variable(name=token.value, span=token.span)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self.parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        self._error("expression")

    def _parse_call(self, name_token: Token) -> FunctionCall:
        """Parse the argument list of a call whose name was just consumed."""
        self._consume(TokenType.LPAREN, "'('")

        arguments: List[AstNode] = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self.parse_expression())
            while self._match(TokenType.COMMA):
                arguments.append(self.parse_expression())

        self._consume(TokenType.RPAREN, "')' or ','")
        return FunctionCall(
            name=name_token.value,
            arguments=tuple(arguments),
            span=self._span_from(name_token),
        )


# =============================================================================
# Public entry points
# =============================================================================

def parse(tokens: List[Token], source: Optional[str] = None) -> AstNode:
    """
    Convenience function to parse tokens into a statement.

    Args:
        tokens: List of tokens from the lexer
        source: Optional original line for diagnostics

    Returns:
        Parsed statement AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, source)
    return parser.parse_statement()


def _parse_line(text: str, line: int) -> AstNode:
    """Lex and parse one statement line, raising NumpusError on failure."""
    stripped = text.strip()
    leading = len(text) - len(text.lstrip())
    tokens = Lexer(stripped, line=line, column=leading + 1).tokenize()
    try:
        return parse(tokens, stripped)
    except RecursionError:
        raise error_nesting_too_deep(tokens[0].span, stripped) from None


def parse_expression(text: str) -> ParseResult[AstNode]:
    """
    Parse one self-contained statement (expression, assignment or function
    definition). The whole input must be consumed.

    Never raises for malformed input; the error is returned in the result
    as "<message> (column <n>)".
    """
    if text is None:
        raise TypeError("text must be a string, not None")

    try:
        return ParseResult.ok(_parse_line(text, 1))
    except NumpusError as e:
        return ParseResult.fail(e.diagnostic.summary())


def _split_lines(text: str) -> List[str]:
    return text.replace("\r\n", "\n").split("\n")


def _comment_at(raw_line: str, line: int) -> Optional[Comment]:
    """Build a Comment node if the line is a '#' comment."""
    trimmed = raw_line.lstrip()
    if not trimmed.startswith("#"):
        return None
    column = raw_line.index("#") + 1
    location = SourceLocation(line, column, column - 1)
    end = SourceLocation(line, len(raw_line) + 1, len(raw_line))
    return Comment(text=trimmed[1:].strip(), span=SourceSpan(location, end))


def document_lines(text: str) -> List[Tuple[int, str]]:
    """Return (1-based line number, raw text) pairs after normalizing line endings."""
    return list(enumerate(_split_lines(text), start=1))


def parse_document(text: str) -> ParseResult[List[AstNode]]:
    """
    Parse a multi-line document into one node per non-blank line.

    Blank lines produce nothing, '#' lines produce Comment nodes. The first
    malformed line fails the whole document with "Line <n>: <message>".
    """
    if text is None:
        raise TypeError("text must be a string, not None")

    if not text.strip():
        return ParseResult.ok([])

    nodes: List[AstNode] = []
    for line, raw_line in document_lines(text):
        if not raw_line.strip():
            continue

        comment = _comment_at(raw_line, line)
        if comment is not None:
            nodes.append(comment)
            continue

        try:
            nodes.append(_parse_line(raw_line, line))
        except NumpusError as e:
            return ParseResult.fail(f"Line {line}: {e.diagnostic.summary()}")

    return ParseResult.ok(nodes)


def parse_line(raw_line: str, line: int = 1) -> ParseResult[AstNode]:
    """
    Parse a single document line, recognizing comment lines.

    Used when each line's outcome is needed separately (document
    evaluation) instead of failing the whole document on the first error.
    Blank lines are an error here; callers skip them first.
    """
    comment = _comment_at(raw_line, line)
    if comment is not None:
        return ParseResult.ok(comment)
    try:
        return ParseResult.ok(_parse_line(raw_line, line))
    except NumpusError as e:
        return ParseResult.fail(e.diagnostic.summary())
