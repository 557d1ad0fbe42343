"""
Static validation of policy documents.

The validator inspects document structure only; it never needs a context and
never raises. Findings are returned as ValidationIssue records so authoring
tools can show every problem at once. The caller decides what to do with
them: the document is neither modified nor rejected here.

Errors:
    - Missing version, name or default action type
    - Rule without id, duplicate rule id, rule without name or action type
    - Condition without field or operator
    - "not" group that does not contain exactly one rule
    - Rule that contains itself, or nesting deeper than max_nesting_depth

Warnings:
    - Rule without conditions and without a nested group
    - Empty "and"/"or" group
    - in/nin value that is not a list; ordering comparison against a
      non-number; "matches" pattern that does not compile
"""

import re
from typing import Any

from policydsl.schema import (
    DslPolicyDocument,
    DslPolicyRule,
    EvaluatorConfig,
    LogicalOperator,
    PolicyCondition,
    PolicyOperator,
    Severity,
    ValidationIssue,
)

DEFAULT_CONFIG = EvaluatorConfig()

_MEMBERSHIP_OPERATORS = {PolicyOperator.IN, PolicyOperator.NIN}
_ORDERING_OPERATORS = {
    PolicyOperator.GT,
    PolicyOperator.GTE,
    PolicyOperator.LT,
    PolicyOperator.LTE,
}


def validate_dsl_policy(
    document: DslPolicyDocument,
    config: EvaluatorConfig | None = None,
) -> list[ValidationIssue]:
    """
    Validate a policy document.

    Args:
        document: The document to check
        config: Engine limits; nesting deeper than max_nesting_depth is
            reported as an error

    Returns:
        Issues in document order; empty when the document is clean
    """
    config = config or DEFAULT_CONFIG
    issues: list[ValidationIssue] = []

    if not document.version:
        issues.append(ValidationIssue.error("version", "Version is required"))

    if not document.name:
        issues.append(ValidationIssue.error("name", "Name is required"))

    if document.default_action.type is None:
        issues.append(
            ValidationIssue.error("defaultAction.type", "Default action type is required")
        )

    _validate_rules(document.rules, config.max_nesting_depth, issues)

    return issues


def has_errors(issues: list[ValidationIssue]) -> bool:
    """Whether any issue is an error (warnings alone do not count)."""
    return any(issue.severity == Severity.ERROR for issue in issues)


def _validate_rules(
    rules: list[DslPolicyRule],
    max_depth: int,
    issues: list[ValidationIssue],
) -> None:
    # Explicit stack, not recursion. Children are pushed in reverse so issues
    # come out in document order.
    seen_ids: set[str] = set()
    stack: list[tuple[DslPolicyRule, str, int, frozenset[int]]] = [
        (rule, f"rules[{i}]", 0, frozenset()) for i, rule in reversed(list(enumerate(rules)))
    ]

    while stack:
        rule, prefix, depth, ancestors = stack.pop()
        _validate_rule(rule, prefix, seen_ids, issues)

        nested = rule.nested
        if nested is None:
            continue

        if id(rule) in ancestors:
            issues.append(
                ValidationIssue.error(f"{prefix}.nested", f"Rule {rule.id!r} contains itself")
            )
            continue

        if depth >= max_depth:
            issues.append(
                ValidationIssue.error(
                    f"{prefix}.nested", f"Rule nesting exceeds {max_depth} levels"
                )
            )
            continue

        if nested.operator == LogicalOperator.NOT and len(nested.rules) != 1:
            issues.append(
                ValidationIssue.error(
                    f"{prefix}.nested.rules",
                    f"'not' group must contain exactly one rule, found {len(nested.rules)}",
                )
            )
        elif not nested.rules:
            issues.append(
                ValidationIssue.warning(
                    f"{prefix}.nested.rules",
                    f"'{nested.operator.value}' group has no rules",
                )
            )

        inner = ancestors | {id(rule)}
        for k in reversed(range(len(nested.rules))):
            stack.append((nested.rules[k], f"{prefix}.nested.rules[{k}]", depth + 1, inner))


def _validate_rule(
    rule: DslPolicyRule,
    prefix: str,
    seen_ids: set[str],
    issues: list[ValidationIssue],
) -> None:
    if not rule.id:
        issues.append(ValidationIssue.error(f"{prefix}.id", "Rule ID is required"))
    elif rule.id in seen_ids:
        issues.append(
            ValidationIssue.error(f"{prefix}.id", f"Duplicate rule ID: {rule.id}")
        )
    else:
        seen_ids.add(rule.id)

    if not rule.name:
        issues.append(ValidationIssue.error(f"{prefix}.name", "Rule name is required"))

    if rule.action.type is None:
        issues.append(
            ValidationIssue.error(f"{prefix}.action.type", "Rule action type is required")
        )

    if not rule.conditions and rule.nested is None:
        issues.append(
            ValidationIssue.warning(
                f"{prefix}.conditions", "Rule must have at least one condition"
            )
        )

    for j, condition in enumerate(rule.conditions):
        _validate_condition(condition, f"{prefix}.conditions[{j}]", issues)


def _validate_condition(
    condition: PolicyCondition,
    prefix: str,
    issues: list[ValidationIssue],
) -> None:
    if not condition.field:
        issues.append(ValidationIssue.error(f"{prefix}.field", "Condition field is required"))

    operator = condition.operator
    if operator is None:
        issues.append(
            ValidationIssue.error(f"{prefix}.operator", "Condition operator is required")
        )
        return

    value = condition.value
    if operator in _MEMBERSHIP_OPERATORS and not isinstance(value, (list, tuple)):
        issues.append(
            ValidationIssue.warning(
                f"{prefix}.value",
                f"'{operator.value}' expects a list value; condition will never match",
            )
        )
    elif operator in _ORDERING_OPERATORS and not _is_number(value):
        issues.append(
            ValidationIssue.warning(
                f"{prefix}.value",
                f"'{operator.value}' expects a numeric value; condition will never match",
            )
        )
    elif operator == PolicyOperator.MATCHES:
        _validate_pattern(value, prefix, issues)


def _validate_pattern(pattern: Any, prefix: str, issues: list[ValidationIssue]) -> None:
    if not isinstance(pattern, str):
        issues.append(
            ValidationIssue.warning(
                f"{prefix}.value", "'matches' expects a string pattern; condition will never match"
            )
        )
        return
    try:
        re.compile(pattern)
    except re.error as e:
        issues.append(
            ValidationIssue.warning(f"{prefix}.value", f"Invalid regular expression: {e}")
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
