"""
Rule evaluator.

A rule matches when it is enabled, all of its conditions hold and, if it
has a nested group, the group holds:

    and  every nested rule matches
    or   at least one nested rule matches
    not  the FIRST nested rule does not match; further rules in the group
         are ignored (an empty "not" group holds). The validator reports
         "not" groups that do not contain exactly one rule.

Nested rules form a tree in well-formed documents. Cyclic structures and
nesting deeper than EvaluatorConfig.max_nesting_depth raise RuleNestingError
so the caller can fail closed.
"""

from typing import assert_never

from policydsl.errors import RuleNestingError
from policydsl.policy.conditions import DEFAULT_CONFIG, evaluate_dsl_condition
from policydsl.schema import (
    DslPolicyContext,
    DslPolicyRule,
    EvaluatorConfig,
    LogicalOperator,
)


def evaluate_dsl_rule(
    rule: DslPolicyRule,
    context: DslPolicyContext,
    config: EvaluatorConfig | None = None,
) -> bool:
    """
    Evaluate a rule against a context.

    Args:
        rule: The rule to test
        context: Runtime facts
        config: Engine limits

    Returns:
        Whether the rule matches

    Raises:
        RuleNestingError: If nested rules are cyclic or too deep
    """
    return _evaluate(rule, context, config or DEFAULT_CONFIG, depth=0, path=frozenset())


def _evaluate(
    rule: DslPolicyRule,
    context: DslPolicyContext,
    config: EvaluatorConfig,
    depth: int,
    path: frozenset[int],
) -> bool:
    if not rule.enabled:
        return False

    if not all(evaluate_dsl_condition(c, context, config) for c in rule.conditions):
        return False

    nested = rule.nested
    if nested is None:
        return True

    if id(rule) in path:
        raise RuleNestingError(
            message=f"Rule {rule.id!r} contains itself",
            rule_id=rule.id,
            depth=depth,
            max_depth=config.max_nesting_depth,
        )
    if depth >= config.max_nesting_depth:
        raise RuleNestingError(
            rule_id=rule.id,
            depth=depth + 1,
            max_depth=config.max_nesting_depth,
        )

    inner_path = path | {id(rule)}

    def matches(child: DslPolicyRule) -> bool:
        return _evaluate(child, context, config, depth + 1, inner_path)

    match nested.operator:
        case LogicalOperator.AND:
            return all(matches(child) for child in nested.rules)
        case LogicalOperator.OR:
            return any(matches(child) for child in nested.rules)
        case LogicalOperator.NOT:
            if not nested.rules:
                return True
            return not matches(nested.rules[0])
        case _:
            assert_never(nested.operator)
