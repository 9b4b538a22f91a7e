"""Unit resolution and dimensional composition backed by pint.

This module turns the unit text written after a numeric literal into a
pint unit, classifies quantities into a closed set of dimension kinds and
decides which products and quotients of those kinds are meaningful:

- A bundled YAML alias table for short tokens (m, kg, degc, hr, ...)
- Environment variable override for the alias table
- Fallback lookups through the pint registry (names, symbols, plurals,
  case-insensitive matches, compound unit expressions like km/h)
- A composition table keyed by (operator, left kind, right kind)

Environment Variables:
    NUMPUS_UNIT_ALIASES: Path to a YAML file replacing the bundled alias
                         table. Same layout as data/unit_aliases.yaml.

Example:
    export NUMPUS_UNIT_ALIASES="$HOME/.config/numpus/aliases.yaml"
"""

from __future__ import annotations

import logging
import os
import tokenize
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pint
import yaml
from pint.errors import PintError

from ..errors import EvaluationError, ErrorKind
from ..lexer import UNIT_PUNCTUATION

logger = logging.getLogger(__name__)

__all__ = [
    "NUMPUS_UNIT_ALIASES",
    "DimensionKind",
    "KINDS",
    "COMPOSITION_TABLE",
    "UnitCatalog",
    "get_unit_registry",
    "get_unit_catalog",
    "load_unit_aliases",
    "clear_cache",
]

# Environment variable name for a replacement alias table
NUMPUS_UNIT_ALIASES = "NUMPUS_UNIT_ALIASES"

# Bundled data location (relative to the package root)
_BUNDLED_ALIASES = Path(__file__).resolve().parent.parent / "data" / "unit_aliases.yaml"

MAX_SUGGESTIONS = 5

# Everything pint (or the tokenizer underneath parse_units) raises for text
# that is not a unit; parse_units asserts on a dangling operator ("m/")
_LOOKUP_ERRORS = (PintError, AttributeError, KeyError, ValueError, TypeError, SyntaxError,
                  AssertionError, tokenize.TokenError)


# =============================================================================
# Dimension kinds and composition rules
# =============================================================================

@dataclass(frozen=True)
class DimensionKind:
    """A named physical dimension and the SI unit results are expressed in."""
    name: str       # Key used by the composition table
    label: str      # Name shown in error messages
    unit: str       # Canonical pint unit expression


KINDS: Tuple[DimensionKind, ...] = (
    DimensionKind("ratio", "Ratio", "dimensionless"),
    DimensionKind("length", "Length", "meter"),
    DimensionKind("area", "Area", "meter ** 2"),
    DimensionKind("volume", "Volume", "meter ** 3"),
    DimensionKind("mass", "Mass", "kilogram"),
    DimensionKind("duration", "Duration", "second"),
    DimensionKind("temperature", "Temperature", "kelvin"),
    DimensionKind("speed", "Speed", "meter / second"),
    DimensionKind("acceleration", "Acceleration", "meter / second ** 2"),
    DimensionKind("frequency", "Frequency", "hertz"),
    DimensionKind("force", "Force", "newton"),
    DimensionKind("energy", "Energy", "joule"),
    DimensionKind("power", "Power", "watt"),
    DimensionKind("pressure", "Pressure", "pascal"),
    DimensionKind("density", "Density", "kilogram / meter ** 3"),
    DimensionKind("mass_flow", "MassFlow", "kilogram / second"),
    DimensionKind("volume_flow", "VolumeFlow", "meter ** 3 / second"),
)

KINDS_BY_NAME: Dict[str, DimensionKind] = {kind.name: kind for kind in KINDS}

RATIO = "ratio"
TEMPERATURE = "temperature"

# left * right -> result, registered for both operand orders
_PRODUCTS = (
    ("length", "length", "area"),
    ("area", "length", "volume"),
    ("speed", "duration", "length"),
    ("acceleration", "duration", "speed"),
    ("mass", "acceleration", "force"),
    ("force", "length", "energy"),
    ("power", "duration", "energy"),
    ("force", "speed", "power"),
    ("pressure", "area", "force"),
    ("density", "volume", "mass"),
    ("mass_flow", "duration", "mass"),
    ("volume_flow", "duration", "volume"),
    ("frequency", "duration", "ratio"),
)

# left / right -> result
_QUOTIENTS = (
    ("area", "length", "length"),
    ("volume", "area", "length"),
    ("volume", "length", "area"),
    ("length", "duration", "speed"),
    ("speed", "duration", "acceleration"),
    ("length", "speed", "duration"),
    ("force", "area", "pressure"),
    ("force", "acceleration", "mass"),
    ("force", "mass", "acceleration"),
    ("energy", "duration", "power"),
    ("energy", "length", "force"),
    ("energy", "force", "length"),
    ("energy", "power", "duration"),
    ("power", "speed", "force"),
    ("mass", "volume", "density"),
    ("mass", "density", "volume"),
    ("mass", "duration", "mass_flow"),
    ("volume", "duration", "volume_flow"),
    ("ratio", "duration", "frequency"),
)


def _build_composition_table() -> Dict[Tuple[str, str, str], str]:
    table: Dict[Tuple[str, str, str], str] = {}
    for left, right, result in _PRODUCTS:
        table[("*", left, right)] = result
        table[("*", right, left)] = result
    for left, right, result in _QUOTIENTS:
        table[("/", left, right)] = result

    # A ratio scales any kind except temperature, which never composes
    for kind in KINDS:
        if kind.name == TEMPERATURE:
            continue
        table.setdefault(("*", RATIO, kind.name), kind.name)
        table.setdefault(("*", kind.name, RATIO), kind.name)
        table.setdefault(("/", kind.name, RATIO), kind.name)
    return table


COMPOSITION_TABLE: Dict[Tuple[str, str, str], str] = _build_composition_table()


# =============================================================================
# Registry and alias table loading
# =============================================================================

def clear_cache() -> None:
    """Clear cached alias data and the shared catalog.

    Call this after changing NUMPUS_UNIT_ALIASES or editing the alias file.
    The pint registry itself is kept so existing quantities stay usable.
    """
    _load_aliases_cached.cache_clear()
    get_unit_catalog.cache_clear()


@lru_cache(maxsize=None)
def get_unit_registry() -> pint.UnitRegistry:
    """Return the process-wide pint registry.

    Quantities from different registries cannot be combined, so every
    catalog shares this one.
    """
    logger.debug("creating pint unit registry")
    return pint.UnitRegistry()


def _alias_path() -> Path:
    """Alias file to use: $NUMPUS_UNIT_ALIASES if set, else the bundled table."""
    env_path = os.environ.get(NUMPUS_UNIT_ALIASES)
    if env_path and env_path.strip():
        return Path(env_path.strip()).expanduser().resolve()
    return _BUNDLED_ALIASES


@lru_cache(maxsize=8)
def _load_aliases_cached(path_str: str) -> Dict[str, str]:
    """Cached alias loading (string path for hashability)."""
    path = Path(path_str)
    if not path.exists():
        raise FileNotFoundError(f"Unit alias file not found: {path}")
    return _load_yaml(path)


def _load_yaml(path: Path) -> Dict[str, str]:
    """Load and validate a YAML alias file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Invalid alias file format in {path}: expected dict at root")

    # Validate schema version
    schema_version = data.get("schema_version", "1.0")
    if not isinstance(schema_version, str) or not schema_version.startswith("1."):
        raise ValueError(
            f"Unsupported schema version '{schema_version}' in {path}. "
            f"Expected version 1.x"
        )

    aliases = data.get("aliases")
    if not isinstance(aliases, dict):
        raise ValueError(f"Alias file {path} missing required 'aliases' mapping")

    table: Dict[str, str] = {}
    for token, unit_name in aliases.items():
        if not isinstance(unit_name, str) or not unit_name.strip():
            raise ValueError(f"Alias '{token}' in {path} must map to a unit name")
        table[str(token).strip().casefold()] = unit_name.strip()

    logger.debug("loaded %d unit aliases from %s", len(table), path)
    return table


def load_unit_aliases(custom_path: Optional[Path] = None) -> Dict[str, str]:
    """Load the alias table.

    Args:
        custom_path: Optional explicit path to a YAML file (overrides the
                     environment variable and the bundled table)

    Returns:
        Mapping of case-folded token to pint unit name

    Raises:
        FileNotFoundError: If the alias file does not exist
        ValueError: If the file has an invalid format
    """
    path = custom_path if custom_path else _alias_path()
    return dict(_load_aliases_cached(str(path)))


# =============================================================================
# Catalog
# =============================================================================

class UnitCatalog:
    """
    Resolves unit text to pint units and applies the composition rules.

    Usage:
        catalog = get_unit_catalog()
        distance = catalog.create_quantity(5, "km")
        catalog.kind_of(distance).name      # "length"

    Lookups that scan the whole registry are built on first use and then
    reused; the catalog is never mutated afterwards.
    """

    def __init__(self, registry: Optional[pint.UnitRegistry] = None,
                 aliases: Optional[Dict[str, str]] = None):
        self.registry = registry if registry is not None else get_unit_registry()
        if aliases is None:
            aliases = load_unit_aliases()
        self.aliases = {token.casefold(): name for token, name in aliases.items()}
        self._name_index: Optional[Dict[str, str]] = None
        self._spellings: Optional[List[str]] = None
        self._kinds: Optional[Dict[object, DimensionKind]] = None

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self, text: str) -> pint.Unit:
        """
        Resolve unit text to a pint unit.

        Tries, in order: the alias table, the registry's own name lookup,
        a case-insensitive match against every registry spelling, and
        finally pint's unit expression parser (km/h, m^2).

        Raises:
            EvaluationError: If nothing recognizes the text
        """
        unit_text = text.strip()
        alias_error = None

        alias = self.aliases.get(unit_text.casefold())
        if alias is not None:
            try:
                unit = self.registry.Unit(alias)
                logger.debug("unit %r resolved by alias table as %s", text, unit)
                return unit
            except _LOOKUP_ERRORS:
                alias_error = f"Unable to resolve unit alias '{text}'."

        strategies: Tuple[Tuple[str, Callable[[str], Optional[pint.Unit]]], ...] = (
            ("registry name", self._lookup_name),
            ("case-insensitive match", self._lookup_insensitive),
            ("unit parser", self._lookup_expression),
        )
        for strategy, lookup in strategies:
            unit = lookup(unit_text)
            if unit is not None:
                logger.debug("unit %r resolved by %s as %s", text, strategy, unit)
                return unit

        raise EvaluationError(alias_error or self.unrecognized_message(text),
                              ErrorKind.UNRECOGNIZED_UNIT)

    def create_quantity(self, value: float, text: str) -> pint.Quantity:
        """Build a quantity from a magnitude and unit text."""
        return self.registry.Quantity(float(value), self.resolve(text))

    def _lookup_name(self, text: str) -> Optional[pint.Unit]:
        if not text:
            return None
        try:
            return self.registry.Unit(self.registry.get_name(text))
        except _LOOKUP_ERRORS:
            return None

    def _lookup_insensitive(self, text: str) -> Optional[pint.Unit]:
        canonical = self.name_index.get(text.casefold())
        if canonical is None:
            # Prefixed units (MM, KPA) are not in the index
            return self._lookup_name(text.casefold()) if text != text.casefold() else None
        try:
            return self.registry.Unit(canonical)
        except _LOOKUP_ERRORS:
            return None

    def _lookup_expression(self, text: str) -> Optional[pint.Unit]:
        # Text ending in an operator is incomplete ("km/", "m^")
        if not text or text[-1] in UNIT_PUNCTUATION:
            return None
        try:
            return self.registry.parse_units(text)
        except _LOOKUP_ERRORS:
            return None

    @property
    def name_index(self) -> Dict[str, str]:
        """Case-folded spelling -> canonical registry name."""
        if self._name_index is None:
            self._build_name_index()
        return self._name_index

    def _build_name_index(self) -> None:
        index: Dict[str, str] = {}
        spellings: Dict[str, str] = {}

        # All-lowercase spellings win collisions
        entries = sorted(
            (entry for entry in dir(self.registry) if not entry.startswith("_")),
            key=lambda entry: (entry != entry.lower(), entry),
        )
        for entry in entries:
            try:
                canonical = self.registry.get_name(entry)
            except _LOOKUP_ERRORS:
                continue
            if not canonical:
                continue
            for spelling in (entry, canonical, canonical + "s"):
                index.setdefault(spelling.casefold(), canonical)
                spellings.setdefault(spelling.casefold(), spelling)

        for token in self.aliases:
            spellings.setdefault(token, token)

        self._name_index = index
        self._spellings = sorted(spellings.values(), key=lambda s: (len(s), s.casefold()))
        logger.debug("indexed %d unit spellings", len(self._spellings))

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    def suggest(self, text: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
        """
        Known unit spellings that are a prefix of the text or start with it.

        Comparison ignores whitespace and case; shorter spellings come first.
        """
        normalized = "".join(text.split()).casefold()
        if not normalized:
            return []

        if self._spellings is None:
            self._build_name_index()

        found: List[str] = []
        seen = set()
        for spelling in self._spellings:
            candidate = "".join(spelling.split()).casefold()
            if not candidate or candidate in seen:
                continue
            if candidate.startswith(normalized) or normalized.startswith(candidate):
                seen.add(candidate)
                found.append(spelling)
                if len(found) >= limit:
                    break
        return found

    def unrecognized_message(self, text: str) -> str:
        message = f"Unrecognized unit '{text}'."
        suggestions = self.suggest(text)
        if len(suggestions) == 1:
            message += f" Did you mean '{suggestions[0]}'?"
        elif suggestions:
            message += f" Did you mean one of: {', '.join(suggestions)}?"
        return message

    # -------------------------------------------------------------------------
    # Dimension kinds
    # -------------------------------------------------------------------------

    def kind_of(self, quantity: pint.Quantity) -> Optional[DimensionKind]:
        """The dimension kind of a quantity, or None if it has none."""
        if self._kinds is None:
            kinds: Dict[object, DimensionKind] = {}
            for kind in KINDS:
                kinds.setdefault(self.registry.Unit(kind.unit).dimensionality, kind)
            self._kinds = kinds
        return self._kinds.get(quantity.dimensionality)

    def label(self, quantity: pint.Quantity) -> str:
        """Human-readable dimension name for error messages."""
        kind = self.kind_of(quantity)
        if kind is not None:
            return kind.label
        return str(quantity.dimensionality)

    def ratio(self, value: float) -> pint.Quantity:
        """A dimensionless quantity."""
        return self.registry.Quantity(float(value), "dimensionless")

    def compose(self, symbol: str, left: pint.Quantity, right: pint.Quantity) -> pint.Quantity:
        """
        Multiply or divide two quantities of known kinds.

        The result is expressed in the canonical unit of the kind the
        composition table names (5 m * 2 m gives 10 m**2).

        Raises:
            EvaluationError: If the table has no entry for the pair
        """
        left_kind = self.kind_of(left)
        right_kind = self.kind_of(right)
        message = f"Cannot apply {symbol} to {self.label(left)} and {self.label(right)}."

        result_name = None
        if left_kind is not None and right_kind is not None:
            result_name = COMPOSITION_TABLE.get((symbol, left_kind.name, right_kind.name))
        if result_name is None:
            raise EvaluationError(message, ErrorKind.UNSUPPORTED_OPERATOR)

        target = KINDS_BY_NAME[result_name]
        try:
            raw = left * right if symbol == "*" else left / right
            return raw.to(target.unit)
        except (PintError, ZeroDivisionError, TypeError, ValueError):
            raise EvaluationError(message, ErrorKind.UNSUPPORTED_OPERATOR) from None


@lru_cache(maxsize=None)
def get_unit_catalog() -> UnitCatalog:
    """Return the shared catalog built from the configured alias table."""
    return UnitCatalog()
