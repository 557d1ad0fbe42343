"""
Policy Evaluator for policydsl.

Resolves a DslPolicyDocument against a DslPolicyContext to a single decision.

Design Principles:
    - First match wins: rules are stable-sorted by ascending priority
      (document order breaks ties) and evaluation stops at the first match
    - Default fallback: if no rule matches, the document's default action
      applies and no rule ID is reported
    - Pure: the document and context are never modified and the evaluator
      keeps no state between calls
    - Auditable: every result carries the policy version, the number of
      rules inspected and the context it was computed for

How it works:
    1. Sort rules by priority (stable)
    2. Evaluate each rule in order with the rule evaluator
    3. Return the first matching rule's action, or the default action

Only "allow" actions set allowed=True. require_approval, notify and audit
are returned as not allowed; interpreting them is the caller's job.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from policydsl.policy.rules import evaluate_dsl_rule
from policydsl.schema import (
    ActionType,
    DslPolicyAction,
    DslPolicyContext,
    DslPolicyDocument,
    DslPolicyResult,
    EvaluatorConfig,
    PolicyAudit,
)

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No matching rules, using default action"


class PolicyEvaluator:
    """
    Evaluates policy documents against contexts.

    The evaluator holds only configuration, so one instance can be shared
    across threads or a new one built per request.

    Usage:
        evaluator = PolicyEvaluator(EvaluatorConfig(max_nesting_depth=8))
        result = evaluator.evaluate(document, context)
        if result.allowed:
            # proceed
        else:
            # inspect result.action.type and result.reasons

    Attributes:
        config: Engine limits
        clock: Returns the audit timestamp (defaults to UTC now)
    """

    def __init__(
        self,
        config: EvaluatorConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            config: Engine limits; defaults to EvaluatorConfig()
            clock: Timestamp source for audit records
        """
        self.config = config or EvaluatorConfig()
        self.clock = clock or (lambda: datetime.now(UTC))

    def evaluate(
        self,
        document: DslPolicyDocument,
        context: DslPolicyContext,
    ) -> DslPolicyResult:
        """
        Evaluate a document against a context.

        Args:
            document: The policy to apply
            context: Runtime facts

        Returns:
            DslPolicyResult for the first matching rule, or for the default
            action when no rule matches

        Raises:
            RuleNestingError: If a rule's nested groups are cyclic or too deep
        """
        sorted_rules = sorted(document.rules, key=lambda rule: rule.priority)

        for index, rule in enumerate(sorted_rules, start=1):
            if evaluate_dsl_rule(rule, context, self.config):
                logger.debug(
                    "Policy %r: rule %r matched after %d of %d rules (action=%s)",
                    document.name,
                    rule.id,
                    index,
                    len(sorted_rules),
                    _action_name(rule.action),
                )
                return self._result(
                    document,
                    context,
                    rule.action,
                    reason=f'Rule "{rule.name}" ({rule.id}) matched',
                    evaluated_rules=index,
                    matched_rule_id=rule.id,
                )

        logger.debug(
            "Policy %r: no rule matched, default action %s",
            document.name,
            _action_name(document.default_action),
        )
        return self._result(
            document,
            context,
            document.default_action,
            reason=NO_MATCH_REASON,
            evaluated_rules=len(sorted_rules),
        )

    def evaluate_or_deny(
        self,
        document: DslPolicyDocument,
        context: DslPolicyContext,
    ) -> DslPolicyResult:
        """
        Evaluate, turning any evaluation failure into a deny decision.

        This is the fail-closed entry point for enforcement callers: a bug or
        malformed structure never results in an allow.
        """
        try:
            return self.evaluate(document, context)
        except Exception as e:
            logger.exception("Policy %r evaluation failed; denying", document.name)
            return self._result(
                document,
                context,
                DslPolicyAction(type=ActionType.DENY),
                reason=f"Policy evaluation failed: {e}",
                evaluated_rules=0,
            )

    def _result(
        self,
        document: DslPolicyDocument,
        context: DslPolicyContext,
        action: DslPolicyAction,
        reason: str,
        evaluated_rules: int,
        matched_rule_id: str | None = None,
    ) -> DslPolicyResult:
        return DslPolicyResult(
            allowed=action.type == ActionType.ALLOW,
            action=action,
            matched_rule_id=matched_rule_id,
            reasons=[reason],
            audit=PolicyAudit(
                timestamp=self.clock(),
                policy_version=document.version,
                evaluated_rules=evaluated_rules,
                context=context,
            ),
        )


def evaluate_dsl_policy(
    document: DslPolicyDocument,
    context: DslPolicyContext,
    config: EvaluatorConfig | None = None,
) -> DslPolicyResult:
    """Evaluate a document with a freshly built PolicyEvaluator."""
    return PolicyEvaluator(config).evaluate(document, context)


def _action_name(action: DslPolicyAction) -> str:
    return action.type.value if action.type else "<missing>"
