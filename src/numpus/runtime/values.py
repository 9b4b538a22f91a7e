"""
Calculation results produced by the evaluator.

A CalculationResult is exactly one of: a plain number, a dimensioned
quantity (a pint Quantity), or an error message. Every evaluation step
returns one; errors are data, never exceptions.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pint

from ..errors import ErrorKind


class ResultKind(Enum):
    """Which variant a CalculationResult holds."""
    NUMERIC = "numeric"
    QUANTITY = "quantity"
    ERROR = "error"


def format_number(value: float) -> str:
    """
    Render a float independent of locale.

    Integral values print without a fractional part ("5", not "5.0");
    everything else uses the shortest round-tripping form.
    """
    if value != value or value in (float("inf"), float("-inf")):
        return repr(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class CalculationResult:
    """
    The outcome of evaluating one node.

    Use the from_* constructors rather than building instances directly.
    """
    numeric: float = 0.0
    quantity: Optional[pint.Quantity] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def from_numeric(cls, value: float) -> "CalculationResult":
        return cls(numeric=float(value))

    @classmethod
    def from_quantity(cls, quantity: pint.Quantity) -> "CalculationResult":
        return cls(quantity=quantity)

    @classmethod
    def from_error(cls, message: Optional[str],
                   kind: ErrorKind = ErrorKind.INVALID_RESULT) -> "CalculationResult":
        if message is None or not message.strip():
            message = "Unknown error"
        return cls(error=message, error_kind=kind)

    @property
    def has_error(self) -> bool:
        return self.error_kind is not None

    @property
    def is_quantity(self) -> bool:
        return self.quantity is not None

    @property
    def kind(self) -> ResultKind:
        if self.has_error:
            return ResultKind.ERROR
        if self.is_quantity:
            return ResultKind.QUANTITY
        return ResultKind.NUMERIC

    @property
    def magnitude(self) -> float:
        """Numeric value, or the quantity's magnitude in its own unit."""
        if self.is_quantity:
            return float(self.quantity.magnitude)
        return self.numeric

    def clone(self) -> "CalculationResult":
        """Independent copy; the quantity is copied so nothing is shared."""
        if self.quantity is None:
            return copy.copy(self)
        return CalculationResult(
            numeric=self.numeric,
            quantity=copy.copy(self.quantity),
            error=self.error,
            error_kind=self.error_kind,
        )

    def get_display_value(self) -> str:
        """Render the result the way a document shows it next to a line."""
        if self.has_error:
            return "Error" if self.error is None else f"Error: {self.error}"

        if self.is_quantity:
            magnitude = format_number(float(self.quantity.magnitude))
            unit_text = f"{self.quantity.units:~P}"
            if not unit_text or unit_text == "dimensionless":
                return magnitude
            return f"{magnitude} {unit_text}"

        return format_number(self.numeric)

    def __str__(self) -> str:
        return self.get_display_value()
