"""
Condition evaluator.

Tests one PolicyCondition against a DslPolicyContext. Every operator returns
a bool and never raises: a type mismatch between the resolved field and the
condition value simply evaluates to False, so one malformed comparison cannot
abort a whole policy evaluation.

Field resolution walks the dotted path through the context:
    - Pydantic models by field name or alias ("environment.ip_address" and
      "environment.ipAddress" are the same field)
    - Mappings by key ("resource.attributes.size")
    - Lists and tuples by integer index ("actor.roles.0")
A path segment that cannot be followed resolves to MISSING.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, assert_never

from pydantic import BaseModel

from policydsl.dsl.parser import AndExpr, ConditionExpr, Expression, NotExpr, OrExpr
from policydsl.schema import (
    DslPolicyContext,
    EvaluatorConfig,
    PolicyCondition,
    PolicyOperator,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = EvaluatorConfig()


class _Missing:
    """Sentinel type for a field path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def evaluate_dsl_condition(
    condition: PolicyCondition,
    context: DslPolicyContext,
    config: EvaluatorConfig | None = None,
) -> bool:
    """
    Evaluate a condition against a context.

    Args:
        condition: The condition to test
        context: Runtime facts
        config: Engine limits (max_pattern_length applies to "matches")

    Returns:
        Whether the condition holds. Never raises.
    """
    config = config or DEFAULT_CONFIG
    value = resolve_field(condition.field, context)
    expected = condition.value
    operator = condition.operator

    if operator is None:
        return False

    match operator:
        case PolicyOperator.EQ:
            return _strict_equals(value, expected)
        case PolicyOperator.NE:
            return not _strict_equals(value, expected)
        case PolicyOperator.GT:
            return _is_number(value) and _is_number(expected) and value > expected
        case PolicyOperator.GTE:
            return _is_number(value) and _is_number(expected) and value >= expected
        case PolicyOperator.LT:
            return _is_number(value) and _is_number(expected) and value < expected
        case PolicyOperator.LTE:
            return _is_number(value) and _is_number(expected) and value <= expected
        case PolicyOperator.IN:
            return isinstance(expected, (list, tuple)) and _contains_item(expected, value)
        case PolicyOperator.NIN:
            return isinstance(expected, (list, tuple)) and not _contains_item(expected, value)
        case PolicyOperator.CONTAINS:
            return isinstance(value, str) and isinstance(expected, str) and expected in value
        case PolicyOperator.MATCHES:
            return _matches(value, expected, config.max_pattern_length)
        case PolicyOperator.EXISTS:
            return value is not MISSING and value is not None
        case _:
            assert_never(operator)


def evaluate_expression(
    expression: Expression,
    context: DslPolicyContext,
    config: EvaluatorConfig | None = None,
) -> bool:
    """Evaluate a parsed boolean expression (see parse_expression)."""
    match expression:
        case ConditionExpr(condition=condition):
            return evaluate_dsl_condition(condition, context, config)
        case AndExpr(operands=operands):
            return all(evaluate_expression(operand, context, config) for operand in operands)
        case OrExpr(operands=operands):
            return any(evaluate_expression(operand, context, config) for operand in operands)
        case NotExpr(operand=operand):
            return not evaluate_expression(operand, context, config)
        case _:
            assert_never(expression)


def resolve_field(path: str, context: Any) -> Any:
    """
    Resolve a dotted path against the context.

    Returns:
        The value at the path, or MISSING if any segment does not resolve
    """
    if not path:
        return MISSING

    value: Any = context
    for part in path.split("."):
        value = _resolve_segment(value, part)
        if value is MISSING:
            return MISSING
    return value


def _resolve_segment(value: Any, part: str) -> Any:
    if isinstance(value, BaseModel):
        for name, info in type(value).model_fields.items():
            if part == name or part == info.alias:
                return getattr(value, name)
        return MISSING

    if isinstance(value, Mapping):
        return value.get(part, MISSING)

    # str.isdigit() also accepts digits like "²" that int() rejects
    if isinstance(value, (list, tuple)) and part.isascii() and part.isdigit():
        index = int(part)
        return value[index] if index < len(value) else MISSING

    return MISSING


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion (True never equals 1)."""
    if left is MISSING or right is MISSING:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def _contains_item(items: list[Any] | tuple[Any, ...], value: Any) -> bool:
    return any(_strict_equals(value, item) for item in items)


def _matches(value: Any, pattern: Any, max_pattern_length: int) -> bool:
    """Regex search; compiled on every call."""
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False

    if max_pattern_length and len(pattern) > max_pattern_length:
        logger.warning(
            "Pattern of %d characters exceeds max_pattern_length=%d; condition is false",
            len(pattern),
            max_pattern_length,
        )
        return False

    try:
        compiled = re.compile(pattern)
    except re.error as e:
        logger.warning("Invalid regular expression %r: %s; condition is false", pattern, e)
        return False

    return compiled.search(value) is not None
