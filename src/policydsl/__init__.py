"""
policydsl - A small policy language for governance decisions.

policydsl tokenizes, parses and evaluates textual governance rules against a
runtime context and produces an allow / deny / require-approval decision.
It provides:
- A condition DSL ("actor.type == 'user'") with line/column error reporting
- Priority-ordered, first-match-wins rule evaluation with a default action
- An audit record for every decision
- Static validation of policy documents

The engine performs no I/O and keeps no global state; loading documents
(policydsl.loader) and the command line (policydsl.cli) sit on top of it.

Example usage:
    $ policydsl validate policy.yaml
    $ policydsl evaluate policy.yaml --context request.yaml
    $ policydsl parse 'resource.attributes.size > 100 and actor.type == "user"'
"""

__version__ = "0.1.0"
__author__ = "policydsl Contributors"

from policydsl.dsl import (
    expression_to_rule,
    parse_condition,
    parse_conditions,
    parse_expression,
)
from policydsl.errors import (
    ConditionParseError,
    DslSyntaxError,
    PolicyDslError,
    PolicyEvaluationError,
    PolicyLoadError,
    RuleNestingError,
)
from policydsl.policy import (
    PolicyEvaluator,
    evaluate_dsl_condition,
    evaluate_dsl_policy,
    evaluate_dsl_rule,
    evaluate_expression,
    validate_dsl_policy,
)
from policydsl.schema import (
    ActionType,
    DslPolicyAction,
    DslPolicyContext,
    DslPolicyDocument,
    DslPolicyResult,
    DslPolicyRule,
    EvaluatorConfig,
    LogicalOperator,
    PolicyCondition,
    PolicyOperator,
    ValidationIssue,
    create_dsl_allow_policy,
    create_dsl_deny_policy,
    create_dsl_rule,
)

__all__ = [
    "__version__",
    "__author__",
    # DSL
    "expression_to_rule",
    "parse_condition",
    "parse_conditions",
    "parse_expression",
    # Evaluation
    "PolicyEvaluator",
    "evaluate_dsl_condition",
    "evaluate_dsl_policy",
    "evaluate_dsl_rule",
    "evaluate_expression",
    "validate_dsl_policy",
    # Models
    "ActionType",
    "DslPolicyAction",
    "DslPolicyContext",
    "DslPolicyDocument",
    "DslPolicyResult",
    "DslPolicyRule",
    "EvaluatorConfig",
    "LogicalOperator",
    "PolicyCondition",
    "PolicyOperator",
    "ValidationIssue",
    "create_dsl_allow_policy",
    "create_dsl_deny_policy",
    "create_dsl_rule",
    # Errors
    "ConditionParseError",
    "DslSyntaxError",
    "PolicyDslError",
    "PolicyEvaluationError",
    "PolicyLoadError",
    "RuleNestingError",
]
