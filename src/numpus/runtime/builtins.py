"""
Built-in function registry for the Numpus evaluator.

Builtins operate on plain numbers only and are resolved before user
functions, so a user definition named "sqrt" is stored but never called.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import math

from ..errors import EvaluationError, ErrorKind
from .values import CalculationResult

logger = logging.getLogger(__name__)

# Checks the scalar arguments and returns an error message, or None if valid
Validator = Callable[..., Optional[str]]


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and argument rules.

    `max_args` of None means variadic. `arity` is the wording used in
    argument count errors ("1", "one or two").
    """
    name: str
    min_args: int
    max_args: Optional[int]
    implementation: Callable[..., float]
    arity: str = ""
    validator: Optional[Validator] = None
    doc: str = ""

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def __call__(self, arguments: Sequence[CalculationResult]) -> CalculationResult:
        """Check the arguments, run the function, and validate the result."""
        if not self.accepts(len(arguments)):
            if self.max_args is None:
                message = f"Function '{self.name}' expects at least one argument."
            else:
                message = (f"Function '{self.name}' expects {self.arity or self.min_args} "
                           f"argument(s) but received {len(arguments)}.")
            raise EvaluationError(message, ErrorKind.ARGUMENT_COUNT)

        values: List[float] = []
        for argument in arguments:
            if argument.is_quantity:
                raise EvaluationError(f"Function '{self.name}' does not support quantity arguments.",
                                      ErrorKind.UNIT_MISMATCH)
            values.append(argument.numeric)

        if self.validator is not None:
            problem = self.validator(*values)
            if problem:
                raise EvaluationError(problem, ErrorKind.DOMAIN)

        try:
            result = float(self.implementation(*values))
        except (ValueError, OverflowError, ZeroDivisionError):
            result = math.nan

        if not math.isfinite(result):
            raise EvaluationError(f"Function '{self.name}' produced an invalid result.",
                                  ErrorKind.INVALID_RESULT)
        return CalculationResult.from_numeric(result)


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Names are case-insensitive. A function may be registered under extra
    aliases; messages always use its primary name.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name.casefold())

    def __contains__(self, name: str) -> bool:
        return name.casefold() in self._functions

    def register(self, func: BuiltinFunction, aliases: Tuple[str, ...] = ()) -> None:
        """Register a function."""
        for name in (func.name,) + aliases:
            self._functions[name.casefold()] = func

    def names(self) -> List[str]:
        """All names a builtin can be called by, sorted."""
        return sorted(self._functions)

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_trig_functions()
        self._register_math_functions()
        self._register_rounding_functions()

    def _unary(self, name: str, implementation: Callable[[float], float],
               validator: Optional[Validator] = None, doc: str = "",
               aliases: Tuple[str, ...] = ()) -> None:
        self.register(BuiltinFunction(name, 1, 1, implementation, "1", validator, doc), aliases)

    # --- Trigonometry ---

    def _register_trig_functions(self) -> None:
        """Register trigonometric functions (radians)."""

        def _unit_interval(name: str) -> Validator:
            def check(x: float) -> Optional[str]:
                if x < -1 or x > 1:
                    return f"Function '{name}' requires an argument in the range [-1, 1]."
                return None
            return check

        self._unary("sin", math.sin, doc="Sine of an angle in radians")
        self._unary("cos", math.cos, doc="Cosine of an angle in radians")
        self._unary("tan", math.tan, doc="Tangent of an angle in radians")
        self._unary("asin", math.asin, _unit_interval("asin"), doc="Arc sine, in radians")
        self._unary("acos", math.acos, _unit_interval("acos"), doc="Arc cosine, in radians")
        self._unary("atan", math.atan, doc="Arc tangent, in radians")

    # --- Math Functions ---

    def _register_math_functions(self) -> None:
        """Register roots, logarithms and powers."""

        def _check_sqrt(x: float) -> Optional[str]:
            if x < 0:
                return "Function 'sqrt' requires a non-negative argument."
            return None

        def _check_ln(x: float) -> Optional[str]:
            if x <= 0:
                return "Function 'ln' requires a positive argument."
            return None

        def _check_log(x: float, base: Optional[float] = None) -> Optional[str]:
            if x <= 0:
                return "Function 'log' requires a positive argument."
            if base is not None and (base <= 0 or base == 1):
                return "Function 'log' requires a positive base not equal to 1."
            return None

        def _log(x: float, base: Optional[float] = None) -> float:
            if base is None:
                return math.log10(x)
            return math.log(x, base)

        self._unary("sqrt", math.sqrt, _check_sqrt, doc="Square root")
        self._unary("abs", abs, doc="Absolute value")
        self._unary("exp", math.exp, doc="e raised to the argument")
        self._unary("ln", math.log, _check_ln, doc="Natural logarithm")

        self.register(BuiltinFunction(
            "log", 1, 2, _log, "one or two", _check_log,
            doc="log(x) is base 10; log(x, base) uses the given base",
        ))
        self.register(BuiltinFunction(
            "pow", 2, 2, math.pow, "2",
            doc="pow(base, exponent)",
        ))
        self.register(BuiltinFunction(
            "min", 1, None, lambda *xs: min(xs), doc="Smallest argument",
        ))
        self.register(BuiltinFunction(
            "max", 1, None, lambda *xs: max(xs), doc="Largest argument",
        ))

    # --- Rounding ---

    def _register_rounding_functions(self) -> None:
        """Register rounding functions."""
        # round() rounds halves to even
        self._unary("round", round, doc="Nearest integer, halves to even")
        self._unary("floor", math.floor, doc="Largest integer not above the argument")
        self._unary("ceiling", math.ceil, doc="Smallest integer not below the argument",
                    aliases=("ceil",))


# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
        logger.debug("registered %d builtin names", len(_registry.names()))
    return _registry


def call_builtin(name: str, arguments: Sequence[CalculationResult]) -> CalculationResult:
    """
    Call a built-in function by name.

    Raises EvaluationError if the function is not found or rejects its
    arguments.
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise EvaluationError(f"Undefined function '{name}'.", ErrorKind.UNDEFINED_FUNCTION)
    return func(arguments)
