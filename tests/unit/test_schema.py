"""
Unit tests for schema models.

Tests cover:
- Aliases and snake_case names
- Immutability and unknown-key rejection
- Factory helpers
- Engine configuration bounds
"""

import pytest
from pydantic import ValidationError

from policydsl.schema import (
    ActionType,
    ActorType,
    ApprovalConfig,
    DslPolicyAction,
    DslPolicyContext,
    DslPolicyDocument,
    DslPolicyResult,
    EvaluatorConfig,
    NotificationChannel,
    PolicyAudit,
    PolicyCondition,
    PolicyOperator,
    Severity,
    ValidationIssue,
    create_dsl_allow_policy,
    create_dsl_deny_policy,
    create_dsl_rule,
)


# =============================================================================
# Document Models
# =============================================================================


class TestDocumentModels:
    """Tests for policy document models."""

    def test_wire_names(self) -> None:
        """camelCase keys populate snake_case fields."""
        doc = DslPolicyDocument.model_validate({
            "version": "1.0.0",
            "name": "p",
            "defaultAction": {"type": "deny"},
            "rules": [],
            "createdAt": "2024-01-01T00:00:00Z",
        })
        assert doc.default_action.type == ActionType.DENY
        assert doc.created_at.year == 2024

    def test_field_names_accepted(self) -> None:
        """snake_case names work too."""
        doc = DslPolicyDocument(version="1", name="p", default_action=DslPolicyAction(type="allow"))
        assert doc.default_action.type == ActionType.ALLOW

    def test_dump_by_alias(self) -> None:
        """Serializing by alias restores the wire names."""
        dumped = create_dsl_allow_policy("p").model_dump(by_alias=True)
        assert "defaultAction" in dumped
        assert "default_action" not in dumped

    def test_rule_defaults(self) -> None:
        """Rules default to priority 100, enabled, no conditions."""
        rule = create_dsl_rule("r", "R", [], DslPolicyAction(type=ActionType.DENY))
        assert rule.priority == 100
        assert rule.enabled is True
        assert rule.nested is None

    def test_frozen(self) -> None:
        """Models cannot be changed after construction."""
        doc = create_dsl_allow_policy("p")
        with pytest.raises(ValidationError):
            doc.name = "other"

    def test_unknown_keys_rejected(self) -> None:
        """Typos in documents are not ignored."""
        with pytest.raises(ValidationError):
            PolicyCondition.model_validate({"field": "a", "operator": "eq", "valeu": 1})

    def test_unknown_operator_rejected(self) -> None:
        """Operators are a closed set."""
        with pytest.raises(ValidationError):
            PolicyCondition(field="a", operator="like", value="x")

    def test_incomplete_models_constructible(self) -> None:
        """Missing structural fields are left for the validator."""
        doc = DslPolicyDocument()
        assert doc.version == ""
        assert doc.default_action.type is None
        assert PolicyCondition().operator is None

    def test_approval_config(self) -> None:
        """Approval config accepts wire names."""
        approval = ApprovalConfig.model_validate(
            {"minApprovers": 2, "requiredRoles": ["admin"], "timeoutHours": 4}
        )
        assert approval.min_approvers == 2
        assert approval.required_roles == ["admin"]
        with pytest.raises(ValidationError):
            ApprovalConfig(min_approvers=-1)

    def test_notification_channels(self) -> None:
        """Notification channels are enums."""
        action = DslPolicyAction.model_validate(
            {"type": "notify", "notification": {"channels": ["slack", "email"]}}
        )
        assert action.notification.channels == [NotificationChannel.SLACK, NotificationChannel.EMAIL]


class TestFactories:
    """Tests for factory helpers."""

    def test_allow_policy(self) -> None:
        """create_dsl_allow_policy builds an empty allow document."""
        doc = create_dsl_allow_policy("open")
        assert (doc.name, doc.version, doc.rules) == ("open", "1.0.0", [])
        assert doc.default_action.type == ActionType.ALLOW

    def test_deny_policy(self) -> None:
        """create_dsl_deny_policy builds an empty deny document."""
        assert create_dsl_deny_policy("closed").default_action.type == ActionType.DENY

    def test_rule(self) -> None:
        """create_dsl_rule passes its arguments through."""
        condition = PolicyCondition(field="a", operator=PolicyOperator.EQ, value=1)
        rule = create_dsl_rule("r", "R", [condition], DslPolicyAction(type=ActionType.AUDIT), priority=7)
        assert rule.conditions == [condition]
        assert rule.priority == 7
        assert rule.action.type == ActionType.AUDIT


# =============================================================================
# Context and Result Models
# =============================================================================


class TestContextModels:
    """Tests for the evaluation context."""

    def test_minimal_context(self) -> None:
        """Only actor, action and resource are required."""
        context = DslPolicyContext.model_validate({
            "actor": {"id": "u", "type": "user"},
            "action": "read",
            "resource": {"type": "doc"},
        })
        assert context.actor.type == ActorType.USER
        assert context.environment is None

    def test_environment_alias(self) -> None:
        """ipAddress is accepted on input."""
        context = DslPolicyContext.model_validate({
            "actor": {"id": "u", "type": "api_key"},
            "action": "read",
            "resource": {"type": "doc"},
            "environment": {"ipAddress": "127.0.0.1"},
        })
        assert context.environment.ip_address == "127.0.0.1"

    def test_actor_type_closed(self) -> None:
        """Actor types are a closed set."""
        with pytest.raises(ValidationError):
            DslPolicyContext.model_validate({
                "actor": {"id": "u", "type": "robot"},
                "action": "read",
                "resource": {"type": "doc"},
            })


class TestResultModels:
    """Tests for results and audit records."""

    def test_result_wire_names(self, user_context, fixed_clock) -> None:
        """Results serialize with camelCase keys."""
        result = DslPolicyResult(
            allowed=False,
            action=DslPolicyAction(type=ActionType.DENY),
            reasons=["r"],
            audit=PolicyAudit(
                timestamp=fixed_clock(),
                policy_version="1",
                evaluated_rules=0,
                context=user_context,
            ),
        )
        dumped = result.model_dump(mode="json", by_alias=True)
        assert dumped["matchedRuleId"] is None
        assert dumped["audit"]["policyVersion"] == "1"
        assert dumped["audit"]["evaluatedRules"] == 0

    def test_evaluated_rules_non_negative(self, user_context, fixed_clock) -> None:
        """evaluated_rules cannot be negative."""
        with pytest.raises(ValidationError):
            PolicyAudit(
                timestamp=fixed_clock(),
                policy_version="1",
                evaluated_rules=-1,
                context=user_context,
            )


class TestValidationIssue:
    """Tests for ValidationIssue constructors."""

    def test_constructors(self) -> None:
        """error() and warning() set severity."""
        assert ValidationIssue.error("p", "m").severity == Severity.ERROR
        assert ValidationIssue.warning("p", "m").severity == Severity.WARNING


class TestEvaluatorConfig:
    """Tests for engine limits."""

    def test_defaults(self) -> None:
        """Defaults are depth 32 and pattern length 1024."""
        config = EvaluatorConfig()
        assert config.max_nesting_depth == 32
        assert config.max_pattern_length == 1024

    def test_bounds(self) -> None:
        """Depth must be positive; pattern length non-negative."""
        with pytest.raises(ValidationError):
            EvaluatorConfig(max_nesting_depth=0)
        with pytest.raises(ValidationError):
            EvaluatorConfig(max_pattern_length=-1)
        assert EvaluatorConfig(max_pattern_length=0).max_pattern_length == 0
