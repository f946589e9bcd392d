"""Branch condition interpreter.

A condition string holds exactly one comparison between a context field and
a literal, tried against two forms in order:

- ``<field> equals <value>`` (keyword is case-insensitive)
- ``<field> <op> <value>`` with ``op`` one of ``>=``, ``<=``, ``>``, ``<``,
  ``==``, ``!=``

Anything else is unparsable and evaluates to ``False``. There is no boolean
composition, nesting or arithmetic.

Surrounding whitespace is stripped before matching, so ``"  age > 5"`` parses.
Field names and numeric literals are ASCII only.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass


LOGGER = logging.getLogger(__name__)

EQUALS_PATTERN = re.compile(r"^(\w+)\s+equals\s+(.+)$", re.IGNORECASE | re.ASCII)
# Two-character operators come first so '>=' is never read as '>' followed by '='.
OPERATOR_PATTERN = re.compile(r"^(\w+)\s*(>=|<=|>|<|==|!=)\s*(.+)$", re.ASCII)
DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
PREFIXED_INT_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")

EQUALITY_OPERATORS = {"equals", "=="}
NUMERIC_OPERATORS = {">", "<", ">=", "<="}
SUPPORTED_OPERATORS = EQUALITY_OPERATORS | NUMERIC_OPERATORS | {"!="}


@dataclass(frozen=True, slots=True)
class ParsedCondition:
    field: str
    operator: str
    value: str

    def evaluate(self, context: Mapping[str, object]) -> bool:
        return compare(self.field, self.operator, self.value, context)


def parse_condition(text: str) -> ParsedCondition | None:
    if not isinstance(text, str):
        return None
    candidate = text.strip()

    match = EQUALS_PATTERN.match(candidate)
    if match:
        return ParsedCondition(field=match.group(1), operator="equals", value=match.group(2).strip())

    match = OPERATOR_PATTERN.match(candidate)
    if match:
        return ParsedCondition(field=match.group(1), operator=match.group(2), value=match.group(3).strip())

    return None


def evaluate_condition(text: str, context: Mapping[str, object]) -> bool:
    parsed = parse_condition(text)
    if parsed is None:
        LOGGER.warning("Unable to parse condition %r; treating it as false.", text)
        return False
    return parsed.evaluate(context)


def compare(field: str, operator: str, expected: str, context: Mapping[str, object]) -> bool:
    actual = context.get(field)
    if actual is None:
        LOGGER.warning("Field '%s' not found in context; condition is false.", field)
        return False

    LOGGER.debug("Comparing %s(%r) %s %s", field, actual, operator, expected)
    op = operator.lower()

    if op in EQUALITY_OPERATORS:
        return to_text(actual).lower() == to_text(expected).lower()
    if op == "!=":
        return to_text(actual).lower() != to_text(expected).lower()

    left = to_number(actual)
    right = to_number(expected)
    # NaN compares false against everything, which is the wanted result.
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right

    LOGGER.warning("Unknown operator '%s'; condition is false.", operator)
    return False


def to_text(value: object) -> str:
    """String form of a context scalar, rendered the way JSON writes it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def to_number(value: object) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        return _int_to_float(value)
    if not isinstance(value, str):
        return math.nan

    text = value.strip()
    if not text:
        return 0.0
    if DECIMAL_RE.match(text):
        return float(text)
    if text in {"Infinity", "+Infinity"}:
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if PREFIXED_INT_RE.match(text):
        return _int_to_float(int(text, 0))
    return math.nan


def _int_to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf
