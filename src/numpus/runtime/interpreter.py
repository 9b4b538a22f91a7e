"""
Tree-walking evaluator for Numpus.

One Evaluator is one calculation session: variables and user functions
defined by earlier statements stay visible to later ones until clear()
is called. Every statement evaluates to a CalculationResult; failures are
returned as error results, never raised.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..ast import (
    AstNode, Number, Variable, Comment, Assignment, UnaryOp, BinaryOp,
    FunctionDefinition, FunctionCall,
)
from ..errors import EvaluationError, ErrorKind
from ..parser import parse_expression
from .values import CalculationResult
from .context import EvaluationContext
from .units import UnitCatalog, get_unit_catalog
from .arithmetic import apply_binary, apply_unary
from .builtins import BuiltinRegistry, get_builtin_registry

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALL_DEPTH = 50


@dataclass(frozen=True)
class UserFunction:
    """A stored user function definition."""
    name: str
    parameters: Tuple[str, ...]
    body: AstNode


class Evaluator:
    """
    Tree-walking evaluator for parsed statements.

    Evaluates AST nodes by dispatching to type-specific methods.

    Usage:
        evaluator = Evaluator()
        evaluator.evaluate(parse_expression("x = 5 km").value)
        evaluator.evaluate(parse_expression("x / 2").value).get_display_value()
        # '2.5 km'
    """

    def __init__(self, catalog: Optional[UnitCatalog] = None,
                 builtins: Optional[BuiltinRegistry] = None,
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        """
        Initialize the evaluator.

        Args:
            catalog: Unit catalog; the shared process-wide catalog if omitted
            builtins: Builtin functions; the global registry if omitted
            max_call_depth: How deeply user function calls may nest before
                the call fails with a recursion error
        """
        self.catalog = catalog if catalog is not None else get_unit_catalog()
        self.builtins = builtins if builtins is not None else get_builtin_registry()
        self.max_call_depth = max_call_depth
        self.context = EvaluationContext()
        self.functions: Dict[str, UserFunction] = {}

    # =========================================================================
    # Public API
    # =========================================================================

    def evaluate(self, node: AstNode) -> CalculationResult:
        """Evaluate one statement or expression node."""
        try:
            return self._evaluate(node)
        except EvaluationError as e:
            logger.debug("evaluation failed: %s", e.message)
            return CalculationResult.from_error(e.message, e.kind)
        except RecursionError:
            return CalculationResult.from_error(
                "Expression is nested too deeply to evaluate.", ErrorKind.RECURSION_LIMIT)

    def evaluate_text(self, text: str) -> CalculationResult:
        """Parse and evaluate a single statement."""
        parsed = parse_expression(text)
        if not parsed.success:
            return CalculationResult.from_error(parsed.error, ErrorKind.PARSE)
        return self.evaluate(parsed.value)

    def get_variables(self) -> Mapping[str, CalculationResult]:
        """Read-only snapshot of the global variables."""
        return MappingProxyType(self.context.global_scope.items())

    def get_functions(self) -> Mapping[str, UserFunction]:
        """Read-only snapshot of the user-defined functions."""
        return MappingProxyType({f.name: f for f in self.functions.values()})

    def clear(self) -> None:
        """Forget every variable and user function."""
        self.context.reset()
        self.functions.clear()
        logger.debug("evaluator state cleared")

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _evaluate(self, node: AstNode) -> CalculationResult:
        """Evaluate a node, raising EvaluationError on failure."""
        if isinstance(node, Number):
            return self._eval_number(node)
        elif isinstance(node, Variable):
            return self._eval_variable(node)
        elif isinstance(node, UnaryOp):
            return apply_unary(node.operator, self._evaluate(node.operand))
        elif isinstance(node, BinaryOp):
            left = self._evaluate(node.left)
            right = self._evaluate(node.right)
            return apply_binary(node.operator, left, right, self.catalog)
        elif isinstance(node, Assignment):
            return self._eval_assignment(node)
        elif isinstance(node, FunctionDefinition):
            return self._eval_function_definition(node)
        elif isinstance(node, FunctionCall):
            return self._eval_function_call(node)
        elif isinstance(node, Comment):
            return CalculationResult.from_numeric(0)
        else:
            raise EvaluationError(f"Unsupported node type '{type(node).__name__}'.",
                                  ErrorKind.UNSUPPORTED_NODE)

    def _eval_number(self, node: Number) -> CalculationResult:
        """Evaluate a literal, resolving its unit if it has one."""
        if node.unit is None or not node.unit.strip():
            return CalculationResult.from_numeric(node.value)
        return CalculationResult.from_quantity(self.catalog.create_quantity(node.value, node.unit))

    def _eval_variable(self, node: Variable) -> CalculationResult:
        """Evaluate a variable lookup."""
        value = self.context.get_variable(node.name)
        if value is None:
            raise EvaluationError(f"Undefined variable '{node.name}'.",
                                  ErrorKind.UNDEFINED_VARIABLE)
        return value.clone()

    def _eval_assignment(self, node: Assignment) -> CalculationResult:
        """Bind a value in the current scope and return it."""
        value = self._evaluate(node.value)
        self.context.set_variable(node.name, value.clone())
        return value

    def _eval_function_definition(self, node: FunctionDefinition) -> CalculationResult:
        """Store (or replace) a user function."""
        folded = [p.casefold() for p in node.parameters]
        if len(set(folded)) != len(folded):
            raise EvaluationError(f"Function '{node.name}' has duplicate parameter names.",
                                  ErrorKind.DUPLICATE_PARAMETER)

        key = node.name.casefold()
        if key in self.functions:
            logger.debug("redefining function %r", node.name)
        else:
            logger.debug("defining function %r(%s)", node.name, ", ".join(node.parameters))
        self.functions[key] = UserFunction(node.name, tuple(node.parameters), node.body)
        return CalculationResult.from_numeric(0)

    def _eval_function_call(self, node: FunctionCall) -> CalculationResult:
        """Evaluate a call to a builtin or user function."""
        # Arguments are evaluated in the caller's scope, left to right
        arguments: List[CalculationResult] = [self._evaluate(arg) for arg in node.arguments]

        builtin = self.builtins.get_function(node.name)
        if builtin is not None:
            return builtin(arguments)

        function = self.functions.get(node.name.casefold())
        if function is None:
            raise EvaluationError(f"Undefined function '{node.name}'.",
                                  ErrorKind.UNDEFINED_FUNCTION)

        if len(function.parameters) != len(arguments):
            raise EvaluationError(
                f"Function '{node.name}' expects {len(function.parameters)} argument(s) "
                f"but received {len(arguments)}.",
                ErrorKind.ARGUMENT_COUNT,
            )

        if self.context.call_depth >= self.max_call_depth:
            raise EvaluationError(
                f"Maximum recursion depth exceeded in function '{node.name}'.",
                ErrorKind.RECURSION_LIMIT,
            )

        with self.context.call_scope(function.name) as scope:
            for parameter, argument in zip(function.parameters, arguments):
                scope.set(parameter, argument.clone())
            result = self._evaluate(function.body)
        return result.clone()


def evaluate(node: AstNode, evaluator: Optional[Evaluator] = None) -> CalculationResult:
    """
    Convenience function to evaluate a node.

    Args:
        node: Parsed statement
        evaluator: Session to evaluate in; a fresh one if omitted

    Returns:
        CalculationResult (never raises for bad input)
    """
    if evaluator is None:
        evaluator = Evaluator()
    return evaluator.evaluate(node)
