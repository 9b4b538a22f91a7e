"""
Numpus - a line-oriented calculator language with physical units.

This module provides:
- Lexer: Tokenizes a statement, attaching unit suffixes to numbers
- Parser: Builds AST from tokens (definitions, assignments, expressions)
- Evaluator: Evaluates statements with unit-aware arithmetic
- evaluate_document: Evaluates a whole document line by line

Usage:
    from numpus import parse_expression, parse_document, Evaluator

    evaluator = Evaluator()
    for node in parse_document('''
    # trip
    distance = 120 km
    time = 1.5 h
    distance / time
    ''').value:
        print(evaluator.evaluate(node).get_display_value())

    # Or evaluate every line, keeping per-line errors
    from numpus import evaluate_document
    summary = evaluate_document("x = 2\\ny = x ^ 10\\nz = q")
    summary.status          # '1 error(s) found'
"""

__version__ = "0.1.0"

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    NumberValue,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    ParseResult,
    parse,
    parse_expression,
    parse_document,
    parse_line,
)

from .ast import (
    AstNode,
    AstVisitor,
    Number,
    Variable,
    Comment,
    Assignment,
    UnaryOp,
    BinaryOp,
    FunctionDefinition,
    FunctionCall,
    format_ast,
    print_ast,
)

from .errors import (
    Diagnostic,
    ErrorSeverity,
    ErrorKind,
    NumpusError,
    LexerError,
    ParserError,
    EvaluationError,
)

from .runtime import (
    CalculationResult,
    ResultKind,
    Evaluator,
    UnitCatalog,
    get_unit_catalog,
    evaluate_document,
    DocumentEvaluation,
    LineResult,
)

__all__ = [
    '__version__',

    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'NumberValue',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'ParseResult',
    'parse',
    'parse_expression',
    'parse_document',
    'parse_line',

    # AST
    'AstNode',
    'AstVisitor',
    'Number',
    'Variable',
    'Comment',
    'Assignment',
    'UnaryOp',
    'BinaryOp',
    'FunctionDefinition',
    'FunctionCall',
    'format_ast',
    'print_ast',

    # Errors
    'Diagnostic',
    'ErrorSeverity',
    'ErrorKind',
    'NumpusError',
    'LexerError',
    'ParserError',
    'EvaluationError',

    # Runtime
    'CalculationResult',
    'ResultKind',
    'Evaluator',
    'UnitCatalog',
    'get_unit_catalog',
    'evaluate_document',
    'DocumentEvaluation',
    'LineResult',
]
