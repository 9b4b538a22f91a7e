"""
Variable scopes for the Numpus evaluator.

The global scope lives for the whole session. Each user function call
gets a fresh scope whose parent is the global scope, so a function body
sees its parameters and the globals but never its caller's locals.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from contextlib import contextmanager

from .values import CalculationResult

logger = logging.getLogger(__name__)


def _key(name: str) -> str:
    return name.casefold()


@dataclass
class Scope:
    """
    A single scope containing variable bindings.

    Names are case-insensitive; the spelling used by the latest assignment
    is kept for display. Scopes form a chain via the `parent` field.
    """
    variables: Dict[str, Tuple[str, CalculationResult]] = field(default_factory=dict)
    parent: Optional["Scope"] = None
    name: str = "anonymous"  # For debugging

    def get(self, name: str) -> Optional[CalculationResult]:
        """Look up a variable in this scope or parent scopes."""
        entry = self.variables.get(_key(name))
        if entry is not None:
            return entry[1]
        if self.parent:
            return self.parent.get(name)
        return None

    def set(self, name: str, value: CalculationResult) -> None:
        """Set a variable in this scope (shadowing parent if exists)."""
        self.variables[_key(name)] = (name, value)

    def items(self) -> Dict[str, CalculationResult]:
        """Bindings of this scope only, keyed by their display spelling."""
        return {display: value for display, value in self.variables.values()}

    def clear(self) -> None:
        self.variables.clear()


@dataclass
class EvaluationContext:
    """
    Scope state for one evaluator session.

    Tracks the global scope, the scope currently receiving assignments and
    how many user function calls are active.
    """
    global_scope: Scope = field(default_factory=lambda: Scope(name="global"))
    current_scope: Optional[Scope] = None
    call_depth: int = 0

    def __post_init__(self):
        if self.current_scope is None:
            self.current_scope = self.global_scope

    def get_variable(self, name: str) -> Optional[CalculationResult]:
        """Look up a variable in the current scope chain."""
        return self.current_scope.get(name)

    def set_variable(self, name: str, value: CalculationResult) -> None:
        """Bind a variable in the current scope."""
        self.current_scope.set(name, value)

    @contextmanager
    def call_scope(self, name: str):
        """
        Context manager for the scope of one user function call.

        Usage:
            with ctx.call_scope("area") as scope:
                scope.set("w", width)
                result = evaluate(body)

        The caller's scope is restored even if evaluation raises.
        """
        old_scope = self.current_scope
        self.current_scope = Scope(parent=self.global_scope, name=name)
        self.call_depth += 1
        logger.debug("push scope %r (depth %d)", name, self.call_depth)
        try:
            yield self.current_scope
        finally:
            self.call_depth -= 1
            self.current_scope = old_scope
            logger.debug("pop scope %r (depth %d)", name, self.call_depth)

    def reset(self) -> None:
        """Drop every binding and return to a single empty global scope."""
        self.global_scope.clear()
        self.current_scope = self.global_scope
        self.call_depth = 0
