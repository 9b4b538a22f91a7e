"""
Operator semantics for numbers and quantities.

Every function takes successful CalculationResults and either returns a
new one or raises EvaluationError. Rules by operand kind:

    op   number,number   qty,qty                    qty,number   number,qty
    +    sum             same dimension only        error        error
    -    difference      same dimension only        error        error
    *    product         composition table          scale        scale
    /    quotient        ratio or composition       scale        error
    ^    power           error                      error        error

Sums and differences are expressed in the left operand's unit. Scaling
works on magnitudes directly so offset units (degC, degF) scale as the
number written rather than as an absolute temperature.
"""

import logging
import math
import sys
from typing import Callable, Dict

import pint
from pint.errors import PintError

from ..errors import EvaluationError, ErrorKind
from .values import CalculationResult
from .units import UnitCatalog

logger = logging.getLogger(__name__)

# Divisors smaller than this in magnitude count as zero
ZERO_TOLERANCE = sys.float_info.min


def _is_zero(value: float) -> bool:
    return abs(value) < ZERO_TOLERANCE


def _invalid(symbol: str) -> EvaluationError:
    return EvaluationError(f"Operator '{symbol}' produced an invalid result.",
                           ErrorKind.INVALID_RESULT)


def _numeric(value: float, symbol: str) -> CalculationResult:
    if not math.isfinite(value):
        raise _invalid(symbol)
    return CalculationResult.from_numeric(value)


def _quantity(quantity: pint.Quantity, symbol: str) -> CalculationResult:
    if not math.isfinite(float(quantity.magnitude)):
        raise _invalid(symbol)
    return CalculationResult.from_quantity(quantity)


def scale_quantity(quantity: pint.Quantity, factor: float, symbol: str = "*") -> CalculationResult:
    """Multiply a quantity's magnitude by a plain number, keeping its unit."""
    magnitude = float(quantity.magnitude) * factor
    return _quantity(type(quantity)(magnitude, quantity.units), symbol)


def _combine(left: pint.Quantity, right: pint.Quantity,
             operation: Callable[[float, float], float], symbol: str) -> CalculationResult:
    """Add or subtract same-dimension quantities in the left operand's unit."""
    if left.dimensionality != right.dimensionality:
        raise EvaluationError("Cannot combine quantities of different types.",
                              ErrorKind.UNIT_MISMATCH)
    try:
        right_magnitude = float(right.to(left.units).magnitude)
    except PintError:
        raise EvaluationError("Cannot combine quantities of different types.",
                              ErrorKind.UNIT_MISMATCH) from None
    magnitude = operation(float(left.magnitude), right_magnitude)
    return _quantity(type(left)(magnitude, left.units), symbol)


def add(left: CalculationResult, right: CalculationResult, catalog: UnitCatalog) -> CalculationResult:
    if not left.is_quantity and not right.is_quantity:
        return _numeric(left.numeric + right.numeric, "+")
    if left.is_quantity and right.is_quantity:
        return _combine(left.quantity, right.quantity, lambda l, r: l + r, "+")
    raise EvaluationError("Cannot add quantities and scalars together.", ErrorKind.UNIT_MISMATCH)


def subtract(left: CalculationResult, right: CalculationResult, catalog: UnitCatalog) -> CalculationResult:
    if not left.is_quantity and not right.is_quantity:
        return _numeric(left.numeric - right.numeric, "-")
    if left.is_quantity and right.is_quantity:
        return _combine(left.quantity, right.quantity, lambda l, r: l - r, "-")
    raise EvaluationError("Cannot subtract a quantity from a scalar or vice versa.",
                          ErrorKind.UNIT_MISMATCH)


def multiply(left: CalculationResult, right: CalculationResult, catalog: UnitCatalog) -> CalculationResult:
    if not left.is_quantity and not right.is_quantity:
        return _numeric(left.numeric * right.numeric, "*")
    if left.is_quantity and right.is_quantity:
        return _quantity(catalog.compose("*", left.quantity, right.quantity), "*")
    if left.is_quantity:
        return scale_quantity(left.quantity, right.numeric, "*")
    return scale_quantity(right.quantity, left.numeric, "*")


def divide(left: CalculationResult, right: CalculationResult, catalog: UnitCatalog) -> CalculationResult:
    if not left.is_quantity and not right.is_quantity:
        if _is_zero(right.numeric):
            raise EvaluationError("Division by zero.", ErrorKind.DIVISION_BY_ZERO)
        return _numeric(left.numeric / right.numeric, "/")

    if left.is_quantity and right.is_quantity:
        if left.quantity.dimensionality == right.quantity.dimensionality:
            # Offset units (0 degC) are only zero after conversion
            try:
                divisor = float(right.quantity.to(left.quantity.units).magnitude)
            except PintError:
                raise EvaluationError(
                    f"Cannot apply / to {catalog.label(left.quantity)} and {catalog.label(right.quantity)}.",
                    ErrorKind.UNSUPPORTED_OPERATOR,
                ) from None
            if _is_zero(divisor):
                raise EvaluationError("Division by zero.", ErrorKind.DIVISION_BY_ZERO)
            return _quantity(catalog.ratio(float(left.quantity.magnitude) / divisor), "/")
        if _is_zero(float(right.quantity.magnitude)):
            raise EvaluationError("Division by zero.", ErrorKind.DIVISION_BY_ZERO)
        return _quantity(catalog.compose("/", left.quantity, right.quantity), "/")

    if left.is_quantity:
        if _is_zero(right.numeric):
            raise EvaluationError("Division by zero.", ErrorKind.DIVISION_BY_ZERO)
        return scale_quantity(left.quantity, 1 / right.numeric, "/")

    raise EvaluationError("Cannot divide a scalar by a quantity.", ErrorKind.UNIT_MISMATCH)


def power(left: CalculationResult, right: CalculationResult, catalog: UnitCatalog) -> CalculationResult:
    if left.is_quantity or right.is_quantity:
        raise EvaluationError("Exponentiation is only supported for scalars.",
                              ErrorKind.UNSUPPORTED_OPERATOR)
    try:
        value = math.pow(left.numeric, right.numeric)
    except (ValueError, OverflowError):
        raise _invalid("^") from None
    return _numeric(value, "^")


BINARY_OPERATORS: Dict[str, Callable[[CalculationResult, CalculationResult, UnitCatalog], CalculationResult]] = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
    "^": power,
}


def apply_binary(symbol: str, left: CalculationResult, right: CalculationResult,
                 catalog: UnitCatalog) -> CalculationResult:
    """Apply a binary operator to two successful results."""
    operation = BINARY_OPERATORS.get(symbol)
    if operation is None:
        raise EvaluationError(f"Unsupported operator '{symbol}'.", ErrorKind.UNSUPPORTED_OPERATOR)
    result = operation(left, right, catalog)
    logger.debug("%s %s %s -> %s", left, symbol, right, result)
    return result


def apply_unary(symbol: str, operand: CalculationResult) -> CalculationResult:
    """Apply a prefix sign to a successful result."""
    if symbol == "+":
        return operand.clone()
    if symbol == "-":
        if operand.is_quantity:
            return scale_quantity(operand.quantity, -1.0, "-")
        return CalculationResult.from_numeric(-operand.numeric)
    raise EvaluationError(f"Unsupported unary operator '{symbol}'.", ErrorKind.UNSUPPORTED_OPERATOR)
