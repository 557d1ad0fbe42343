"""
Schema definitions for policydsl.

This module defines the Pydantic models shared by every stage of the engine:
- PolicyCondition/DslPolicyRule/DslPolicyAction: What a policy says
- DslPolicyDocument: The unit of validation and evaluation
- DslPolicyContext: The runtime facts a policy is evaluated against
- DslPolicyResult/PolicyAudit: The decision and its audit record
- ValidationIssue: A finding from the static validator
- EvaluatorConfig: Engine limits

Design Decisions:
    - Models are immutable (frozen=True) and reject unknown keys
    - Python field names are snake_case; camelCase wire names are aliases
    - Structural fields (version, name, ids, action types) default to empty
      so that incomplete documents can be built and reported by the
      validator instead of failing at construction time
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class PolicyOperator(str, Enum):
    """Comparison operator of a condition."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    CONTAINS = "contains"
    MATCHES = "matches"
    EXISTS = "exists"


class LogicalOperator(str, Enum):
    """Combinator of a nested rule group."""

    AND = "and"
    OR = "or"
    NOT = "not"


class ActionType(str, Enum):
    """What happens when a rule (or the default) applies."""

    ALLOW = "allow"
    DENY = "deny"
    REQUIRE_APPROVAL = "require_approval"
    NOTIFY = "notify"
    AUDIT = "audit"


class NotificationChannel(str, Enum):
    """Delivery channel for notify actions."""

    EMAIL = "email"
    SLACK = "slack"
    WEBHOOK = "webhook"


class ActorType(str, Enum):
    """Kind of principal performing an action."""

    USER = "user"
    SYSTEM = "system"
    API_KEY = "api_key"


class Severity(str, Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


# =============================================================================
# Policy Models
# =============================================================================


class PolicyCondition(BaseModel):
    """
    An atomic test of one context field against a literal value.

    Attributes:
        field: Dotted path into the context (e.g., "resource.attributes.size")
        operator: Comparison operator
        value: Literal to compare against (ignored by "exists")
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = Field(default="", description="Dotted path into the context")
    operator: PolicyOperator | None = Field(default=None, description="Comparison operator")
    value: Any = Field(default=None, description="Literal to compare against")


class ApprovalConfig(BaseModel):
    """Approval requirements for require_approval actions."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    min_approvers: int = Field(..., alias="minApprovers", ge=0)
    required_roles: list[str] | None = Field(default=None, alias="requiredRoles")
    timeout_hours: float | None = Field(default=None, alias="timeoutHours", gt=0)


class NotificationConfig(BaseModel):
    """Notification settings for notify actions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    channels: list[NotificationChannel] = Field(default_factory=list)
    template: str | None = None


class DslPolicyAction(BaseModel):
    """
    The action a rule (or the document default) resolves to.

    Attributes:
        type: Action type; None when missing (reported by the validator)
        approval: Approval config for require_approval
        notification: Notification config for notify
        metadata: Free-form data passed through to the caller
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: ActionType | None = Field(default=None, description="Action type")
    approval: ApprovalConfig | None = None
    notification: NotificationConfig | None = None
    metadata: dict[str, Any] | None = None


class NestedRules(BaseModel):
    """
    A boolean group of sub-rules attached to a rule.

    "not" negates only the first rule of the group.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operator: LogicalOperator
    rules: list["DslPolicyRule"] = Field(default_factory=list)


class DslPolicyRule(BaseModel):
    """
    A named, prioritized unit of conditions with an action.

    Attributes:
        id: Identifier, unique within a document
        name: Human-readable name used in decision reasons
        description: Optional description
        conditions: Conditions, ANDed together
        nested: Optional boolean group of sub-rules
        action: Action taken when the rule matches
        priority: Lower values are evaluated first
        enabled: Disabled rules never match
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default="", description="Rule identifier")
    name: str = Field(default="", description="Rule name")
    description: str | None = None
    conditions: list[PolicyCondition] = Field(default_factory=list)
    nested: NestedRules | None = None
    action: DslPolicyAction = Field(default_factory=DslPolicyAction)
    priority: int = Field(default=100, description="Lower values are evaluated first")
    enabled: bool = Field(default=True, description="Whether the rule can match")


NestedRules.model_rebuild()
DslPolicyRule.model_rebuild()


class DslPolicyDocument(BaseModel):
    """
    A complete policy: rules plus a default action.

    The document is caller-owned input; the engine never modifies it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    version: str = Field(default="", description="Policy version")
    name: str = Field(default="", description="Policy name")
    description: str | None = None
    default_action: DslPolicyAction = Field(
        default_factory=DslPolicyAction,
        alias="defaultAction",
        description="Action used when no rule matches",
    )
    rules: list[DslPolicyRule] = Field(default_factory=list)
    variables: dict[str, Any] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


# =============================================================================
# Context Models
# =============================================================================


class Actor(BaseModel):
    """The principal performing the action."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    type: ActorType
    roles: list[str] | None = None
    attributes: dict[str, Any] | None = None


class Resource(BaseModel):
    """The resource being accessed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str
    id: str | None = None
    attributes: dict[str, Any] | None = None


class Environment(BaseModel):
    """Ambient facts about the request."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    timestamp: datetime | None = None
    ip_address: str | None = Field(default=None, alias="ipAddress")
    region: str | None = None


class DslPolicyContext(BaseModel):
    """
    Runtime facts a policy is evaluated against.

    Condition fields are dotted paths into this model, e.g. "actor.roles",
    "resource.attributes.size" or "environment.ipAddress".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    actor: Actor
    action: str
    resource: Resource
    environment: Environment | None = None
    custom: dict[str, Any] | None = None


# =============================================================================
# Result Models
# =============================================================================


class PolicyAudit(BaseModel):
    """Audit record of one evaluation."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    timestamp: datetime
    policy_version: str = Field(..., alias="policyVersion")
    evaluated_rules: int = Field(..., alias="evaluatedRules", ge=0)
    context: DslPolicyContext


class DslPolicyResult(BaseModel):
    """
    The decision produced by evaluating a document against a context.

    Attributes:
        allowed: True only when the applied action is "allow"
        action: The action of the matched rule, or the default action
        matched_rule_id: ID of the matched rule; None when the default applied
        reasons: Human-readable reasons for the decision
        audit: Audit record
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    allowed: bool
    action: DslPolicyAction
    matched_rule_id: str | None = Field(default=None, alias="matchedRuleId")
    reasons: list[str] = Field(default_factory=list)
    audit: PolicyAudit


class ValidationIssue(BaseModel):
    """A structural finding reported by the validator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    message: str
    severity: Severity

    @classmethod
    def error(cls, path: str, message: str) -> "ValidationIssue":
        """Create an ERROR issue."""
        return cls(path=path, message=message, severity=Severity.ERROR)

    @classmethod
    def warning(cls, path: str, message: str) -> "ValidationIssue":
        """Create a WARNING issue."""
        return cls(path=path, message=message, severity=Severity.WARNING)


# =============================================================================
# Engine Configuration
# =============================================================================


class EvaluatorConfig(BaseModel):
    """
    Limits applied by the policy evaluator.

    Attributes:
        max_nesting_depth: Deepest nested rule group evaluated before
            evaluation is aborted with RuleNestingError
        max_pattern_length: Longest "matches" pattern that is compiled;
            longer patterns evaluate to False. 0 disables the limit.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_nesting_depth: int = Field(default=32, ge=1)
    max_pattern_length: int = Field(default=1024, ge=0)


# =============================================================================
# Factory Helpers
# =============================================================================


def create_dsl_allow_policy(name: str) -> DslPolicyDocument:
    """Create an empty policy whose default action is allow."""
    return DslPolicyDocument(
        version="1.0.0",
        name=name,
        default_action=DslPolicyAction(type=ActionType.ALLOW),
        rules=[],
    )


def create_dsl_deny_policy(name: str) -> DslPolicyDocument:
    """Create an empty policy whose default action is deny."""
    return DslPolicyDocument(
        version="1.0.0",
        name=name,
        default_action=DslPolicyAction(type=ActionType.DENY),
        rules=[],
    )


def create_dsl_rule(
    id: str,
    name: str,
    conditions: list[PolicyCondition],
    action: DslPolicyAction,
    priority: int = 100,
) -> DslPolicyRule:
    """Create an enabled rule."""
    return DslPolicyRule(
        id=id,
        name=name,
        conditions=conditions,
        action=action,
        priority=priority,
        enabled=True,
    )
