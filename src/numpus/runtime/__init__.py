"""
Numpus Runtime - Tree-walking evaluator for calculation documents.

This module provides:
- Evaluator: Evaluates statements against a persistent session
- CalculationResult: Number, quantity or error produced by evaluation
- EvaluationContext: Variable scope management
- UnitCatalog: Unit resolution and dimensional composition (pint)
- BuiltinRegistry: Built-in math function implementations
- evaluate_document: Line-by-line evaluation of a whole document
"""

from .values import (
    CalculationResult,
    ResultKind,
    format_number,
)

from .context import (
    Scope,
    EvaluationContext,
)

from .units import (
    NUMPUS_UNIT_ALIASES,
    DimensionKind,
    KINDS,
    COMPOSITION_TABLE,
    UnitCatalog,
    get_unit_registry,
    get_unit_catalog,
    load_unit_aliases,
    clear_cache,
)

from .arithmetic import (
    apply_binary,
    apply_unary,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Evaluator,
    UserFunction,
    evaluate,
)

from .document import (
    LineResult,
    DocumentEvaluation,
    evaluate_document,
)

__all__ = [
    # Values
    'CalculationResult',
    'ResultKind',
    'format_number',

    # Context
    'Scope',
    'EvaluationContext',

    # Units
    'NUMPUS_UNIT_ALIASES',
    'DimensionKind',
    'KINDS',
    'COMPOSITION_TABLE',
    'UnitCatalog',
    'get_unit_registry',
    'get_unit_catalog',
    'load_unit_aliases',
    'clear_cache',

    # Arithmetic
    'apply_binary',
    'apply_unary',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',

    # Evaluator
    'Evaluator',
    'UserFunction',
    'evaluate',

    # Documents
    'LineResult',
    'DocumentEvaluation',
    'evaluate_document',
]
