"""
Unit tests for the built-in function registry.
"""

import math

import pytest
from numpus import CalculationResult, ErrorKind, EvaluationError, Evaluator
from numpus.runtime import BuiltinRegistry, get_builtin_registry, call_builtin, get_unit_registry


def num(value):
    return CalculationResult.from_numeric(value)


def call(name, *values):
    return call_builtin(name, [num(v) for v in values])


def call_error(name, *values):
    with pytest.raises(EvaluationError) as exc_info:
        call(name, *values)
    return exc_info.value


class TestRegistry:
    """Test registry lookup."""

    def test_global_registry_is_shared(self):
        """The global registry is built once."""
        assert get_builtin_registry() is get_builtin_registry()

    def test_case_insensitive_lookup(self):
        """Names ignore case."""
        registry = BuiltinRegistry()
        assert registry.get_function("SQRT") is registry.get_function("sqrt")
        assert "Max" in registry

    def test_ceil_alias(self):
        """ceil is another name for ceiling."""
        registry = BuiltinRegistry()
        assert registry.get_function("ceil") is registry.get_function("ceiling")

    def test_all_names(self):
        """Every documented builtin is registered."""
        names = set(BuiltinRegistry().names())
        assert {
            "sin", "cos", "tan", "asin", "acos", "atan", "sqrt", "abs", "exp",
            "ln", "log", "pow", "min", "max", "round", "floor", "ceiling", "ceil",
        } <= names

    def test_unknown_function(self):
        """Unknown names raise an undefined-function error."""
        error = call_error("nope", 1)
        assert error.kind == ErrorKind.UNDEFINED_FUNCTION
        assert error.message == "Undefined function 'nope'."


class TestMath:
    """Test function results."""

    def test_trig(self):
        """Trigonometry works in radians."""
        assert call("sin", math.pi / 2).numeric == pytest.approx(1.0)
        assert call("cos", 0).numeric == pytest.approx(1.0)
        assert call("atan", 1).numeric == pytest.approx(math.pi / 4)
        assert call("acos", -1).numeric == pytest.approx(math.pi)

    def test_roots_and_logs(self):
        """sqrt, ln, exp and both forms of log."""
        assert call("sqrt", 16).numeric == pytest.approx(4.0)
        assert call("ln", math.e).numeric == pytest.approx(1.0)
        assert call("exp", 0).numeric == pytest.approx(1.0)
        assert call("log", 1000).numeric == pytest.approx(3.0)
        assert call("log", 8, 2).numeric == pytest.approx(3.0)

    def test_pow(self):
        """pow(base, exponent)."""
        assert call("pow", 2, 10).numeric == pytest.approx(1024.0)
        assert call("pow", 4, 0.5).numeric == pytest.approx(2.0)

    def test_min_max(self):
        """Variadic reduction."""
        assert call("min", 4, -2, 7).numeric == -2.0
        assert call("max", 4, -2, 7).numeric == 7.0
        assert call("max", 3).numeric == 3.0

    def test_rounding(self):
        """round, floor and ceiling."""
        assert call("round", 2.5).numeric == 2.0
        assert call("round", 3.5).numeric == 4.0
        assert call("floor", -1.5).numeric == -2.0
        assert call("ceiling", 1.2).numeric == 2.0
        assert call("abs", -3).numeric == 3.0


class TestArgumentChecks:
    """Test argument count and type errors."""

    def test_wrong_count(self):
        """Fixed-arity functions report expected and received."""
        error = call_error("sqrt", 1, 2)
        assert error.kind == ErrorKind.ARGUMENT_COUNT
        assert error.message == "Function 'sqrt' expects 1 argument(s) but received 2."

    def test_log_count(self):
        """log accepts one or two arguments."""
        error = call_error("log", 1, 2, 3)
        assert error.message == "Function 'log' expects one or two argument(s) but received 3."

    def test_pow_count(self):
        """pow needs exactly two arguments."""
        assert call_error("pow", 2).message == "Function 'pow' expects 2 argument(s) but received 1."

    def test_variadic_without_arguments(self):
        """min and max need at least one argument."""
        assert call_error("max").message == "Function 'max' expects at least one argument."

    def test_alias_reports_primary_name(self):
        """Messages name the function, not the alias used."""
        assert "'ceiling'" in call_error("ceil").message

    def test_quantity_argument(self):
        """Dimensioned arguments are rejected."""
        quantity = CalculationResult.from_quantity(get_unit_registry().Quantity(4.0, "meter"))
        with pytest.raises(EvaluationError) as exc_info:
            call_builtin("sqrt", [quantity])
        assert exc_info.value.message == "Function 'sqrt' does not support quantity arguments."
        assert exc_info.value.kind == ErrorKind.UNIT_MISMATCH


class TestDomain:
    """Test domain and invalid-result errors."""

    @pytest.mark.parametrize("name, args, message", [
        ("sqrt", (-1,), "Function 'sqrt' requires a non-negative argument."),
        ("ln", (0,), "Function 'ln' requires a positive argument."),
        ("log", (-5,), "Function 'log' requires a positive argument."),
        ("log", (8, 1), "Function 'log' requires a positive base not equal to 1."),
        ("log", (8, -2), "Function 'log' requires a positive base not equal to 1."),
        ("asin", (1.5,), "Function 'asin' requires an argument in the range [-1, 1]."),
        ("acos", (-2,), "Function 'acos' requires an argument in the range [-1, 1]."),
    ])
    def test_domain_errors(self, name, args, message):
        """Each function names its own restriction."""
        error = call_error(name, *args)
        assert error.kind == ErrorKind.DOMAIN
        assert error.message == message

    def test_overflow(self):
        """Overflow is an invalid result."""
        error = call_error("exp", 1000)
        assert error.kind == ErrorKind.INVALID_RESULT
        assert error.message == "Function 'exp' produced an invalid result."

    def test_pow_of_negative_base(self):
        """Fractional powers of negatives are invalid."""
        assert call_error("pow", -8, 0.5).kind == ErrorKind.INVALID_RESULT


class TestEvaluatorDispatch:
    """Test builtins reached through the evaluator."""

    def test_builtin_shadows_user_function(self):
        """Builtins are checked before user definitions."""
        evaluator = Evaluator()
        evaluator.evaluate_text("sqrt(x) = 99")
        assert evaluator.evaluate_text("sqrt(16)").numeric == pytest.approx(4.0)

    def test_nested_calls(self):
        """Builtin results feed other builtins."""
        result = Evaluator().evaluate_text("max(abs(-7), floor(6.9), 2 ^ 3)")
        assert result.numeric == 8.0
