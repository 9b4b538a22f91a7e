"""
Lexer for Numpus statements.

Converts a single line of source text into a stream of tokens for the parser.
Supports:
- Inline whitespace (any Unicode whitespace except line breaks) between tokens
- Decimal literals with optional fraction and exponent
- Unit suffixes attached to numeric literals (5 km, 100m/s, 3 m^2)
- Identifiers for variables, functions and parameters
- Arithmetic operators, assignment, parentheses and commas

Documents are split into lines before lexing; comment lines never reach
the lexer.
"""

from typing import List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, NumberValue, SINGLE_CHAR_TOKENS,
)
from .errors import (
    LexerError,
    error_unexpected_character,
    error_invalid_number_literal,
)


# Characters allowed after the first letter of a unit suffix
UNIT_PUNCTUATION = "_-/^"

# Statements never continue onto another line
LINE_BREAKS = "\r\n\v\f\x1c\x1d\x1e\x85\u2028\u2029"


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class Lexer:
    """
    Tokenizer for one Numpus statement.

    Usage:
        lexer = Lexer("speed = 100 km/h")
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code, line=3)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, line: int = 1, column: int = 1):
        self.source = source
        self.pos = 0            # Current position in source
        self.line = line        # Line number reported in spans (1-indexed)
        self.column = column    # Current column (1-indexed)

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace_within_line(self) -> None:
        """Skip whitespace other than line breaks (spaces, tabs, no-break spaces)."""
        while self._peek().isspace() and self._peek() not in LINE_BREAKS:
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_digits(self) -> None:
        while _is_digit(self._peek()):
            self._advance()

    def _scan_number(self) -> Token:
        """Scan a numeric literal and any unit suffix that follows it."""
        start = self._location()

        self._scan_digits()

        # Fraction needs at least one digit after the point
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()  # consume '.'
            self._scan_digits()

        # Exponent is only taken when digits follow, otherwise the letter
        # starts a unit suffix ("2e5" vs "2em")
        if self._peek() in 'eE':
            sign = 1 if self._peek(1) in '+-' else 0
            if _is_digit(self._peek(1 + sign)):
                self._advance()  # consume 'e'
                if sign:
                    self._advance()
                self._scan_digits()

        number_text = self.source[start.offset:self.pos]
        try:
            value = float(number_text)
        except ValueError:
            raise error_invalid_number_literal(number_text, self._span(start), self.source)

        unit = self._scan_unit_suffix()
        return self._make_token(TokenType.NUMBER, NumberValue(value, unit), start)

    def _scan_unit_suffix(self) -> Optional[str]:
        """Scan a unit suffix, adjacent or after inline whitespace."""
        saved = (self.pos, self.column)
        self._skip_whitespace_within_line()

        if not self._peek().isalpha():
            self.pos, self.column = saved
            return None

        unit_start = self.pos
        self._advance()
        while self._peek().isalnum() or self._peek() in UNIT_PUNCTUATION:
            self._advance()
        return self.source[unit_start:self.pos]

    def _scan_identifier(self) -> Token:
        """Scan an identifier."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_within_line()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        # Numbers (with optional unit suffix)
        if _is_digit(ch):
            return self._scan_number()

        # Identifiers
        if ch.isalpha() or ch == '_':
            return self._scan_identifier()

        self._advance()
        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        # Unknown character
        raise error_unexpected_character(ch, self._span(start), self.source)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, line: int = 1) -> List[Token]:
    """
    Convenience function to tokenize a statement.

    Args:
        source: The statement text
        line: Line number to report in token spans

    Returns:
        List of tokens, always terminated by an EOF token

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, line)
    return lexer.tokenize()


__all__ = ["Lexer", "LexerError", "tokenize"]
