"""
Policy evaluation and validation for policydsl.

Key concepts:
    - Condition evaluator: one field/operator/value test, never raises
    - Rule evaluator: conditions plus nested and/or/not groups
    - PolicyEvaluator: first-match-wins over priority-sorted rules with a
      default action fallback and an audit record
    - Validator: static structural checks returning issues as data

The evaluator must be:
    - Predictable: Same inputs always produce same decisions
    - Pure: No I/O and no state kept between calls
    - Auditable: Every decision carries its reasons
"""

from policydsl.policy.conditions import (
    MISSING,
    evaluate_dsl_condition,
    evaluate_expression,
    resolve_field,
)
from policydsl.policy.engine import PolicyEvaluator, evaluate_dsl_policy
from policydsl.policy.rules import evaluate_dsl_rule
from policydsl.policy.validation import has_errors, validate_dsl_policy

__all__ = [
    "MISSING",
    "PolicyEvaluator",
    "evaluate_dsl_condition",
    "evaluate_dsl_policy",
    "evaluate_dsl_rule",
    "evaluate_expression",
    "has_errors",
    "resolve_field",
    "validate_dsl_policy",
]
