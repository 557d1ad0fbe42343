"""
Unit tests for the policy validator.

Tests cover:
- Document-level required fields
- Rule IDs, names and actions (including nested rules)
- Condition checks and value warnings
- Nested group checks ("not" arity, empty groups, cycles, depth)
"""

from policydsl.policy import has_errors, validate_dsl_policy
from policydsl.schema import (
    ActionType,
    DslPolicyAction,
    DslPolicyDocument,
    DslPolicyRule,
    EvaluatorConfig,
    LogicalOperator,
    NestedRules,
    PolicyCondition,
    PolicyOperator,
    Severity,
    ValidationIssue,
    create_dsl_allow_policy,
    create_dsl_deny_policy,
)


ALLOW = DslPolicyAction(type=ActionType.ALLOW)
CONDITION = PolicyCondition(field="action", operator=PolicyOperator.EQ, value="read")


def valid_rule(id: str, **kw) -> DslPolicyRule:
    fields = {"name": id.title(), "conditions": [CONDITION], "action": ALLOW, **kw}
    return DslPolicyRule(id=id, **fields)


def document(*rules: DslPolicyRule) -> DslPolicyDocument:
    return DslPolicyDocument(
        version="1.0.0",
        name="doc",
        default_action=DslPolicyAction(type=ActionType.DENY),
        rules=list(rules),
    )


def paths(issues: list[ValidationIssue], severity: Severity | None = None) -> list[str]:
    return [i.path for i in issues if severity is None or i.severity == severity]


# =============================================================================
# Document Level
# =============================================================================


class TestDocument:
    """Tests for document-level checks."""

    def test_factory_policies_are_clean(self) -> None:
        """Factory documents produce no issues."""
        assert validate_dsl_policy(create_dsl_allow_policy("x")) == []
        assert validate_dsl_policy(create_dsl_deny_policy("x")) == []

    def test_valid_document(self) -> None:
        """A well-formed document produces no issues."""
        assert validate_dsl_policy(document(valid_rule("a"), valid_rule("b"))) == []

    def test_empty_document(self) -> None:
        """Missing version, name and default action type are errors."""
        issues = validate_dsl_policy(DslPolicyDocument())
        assert paths(issues, Severity.ERROR) == ["version", "name", "defaultAction.type"]
        assert issues[0].message == "Version is required"
        assert issues[1].message == "Name is required"
        assert issues[2].message == "Default action type is required"

    def test_never_raises_or_modifies(self) -> None:
        """Validation returns data and leaves the document untouched."""
        doc = document(DslPolicyRule())
        before = doc.model_dump()
        issues = validate_dsl_policy(doc)
        assert issues
        assert doc.model_dump() == before


# =============================================================================
# Rules
# =============================================================================


class TestRules:
    """Tests for rule-level checks."""

    def test_duplicate_ids(self) -> None:
        """The second occurrence of an ID is reported."""
        issues = validate_dsl_policy(document(valid_rule("a"), valid_rule("b"), valid_rule("a")))
        assert len(issues) == 1
        assert issues[0].path == "rules[2].id"
        assert issues[0].message == "Duplicate rule ID: a"
        assert issues[0].severity == Severity.ERROR

    def test_missing_rule_fields(self) -> None:
        """ID, name and action type are required."""
        issues = validate_dsl_policy(document(DslPolicyRule(conditions=[CONDITION])))
        assert paths(issues, Severity.ERROR) == ["rules[0].id", "rules[0].name", "rules[0].action.type"]

    def test_rule_without_conditions_warns(self) -> None:
        """A rule that matches everything is a warning, not an error."""
        issues = validate_dsl_policy(document(valid_rule("a", conditions=[])))
        assert len(issues) == 1
        assert issues[0].severity == Severity.WARNING
        assert issues[0].path == "rules[0].conditions"
        assert issues[0].message == "Rule must have at least one condition"
        assert not has_errors(issues)

    def test_rule_with_only_nested_group_ok(self) -> None:
        """A nested group counts as the rule's matching logic."""
        rule = valid_rule(
            "a",
            conditions=[],
            nested=NestedRules(operator=LogicalOperator.OR, rules=[valid_rule("b")]),
        )
        assert validate_dsl_policy(document(rule)) == []


class TestConditions:
    """Tests for condition-level checks."""

    def test_missing_field_and_operator(self) -> None:
        """Conditions need a field and an operator."""
        rule = valid_rule("a", conditions=[PolicyCondition()])
        issues = validate_dsl_policy(document(rule))
        assert paths(issues, Severity.ERROR) == [
            "rules[0].conditions[0].field",
            "rules[0].conditions[0].operator",
        ]

    def test_exists_needs_no_value(self) -> None:
        """exists conditions are complete without a value."""
        rule = valid_rule("a", conditions=[PolicyCondition(field="actor.id", operator=PolicyOperator.EXISTS)])
        assert validate_dsl_policy(document(rule)) == []

    def test_in_with_non_list_warns(self) -> None:
        """in/nin against a non-list can never match."""
        rule = valid_rule(
            "a",
            conditions=[
                PolicyCondition(field="x", operator=PolicyOperator.IN, value="not-an-array"),
                PolicyCondition(field="x", operator=PolicyOperator.NIN, value=["ok"]),
            ],
        )
        issues = validate_dsl_policy(document(rule))
        assert paths(issues, Severity.WARNING) == ["rules[0].conditions[0].value"]

    def test_ordering_with_non_number_warns(self) -> None:
        """Ordering against strings or booleans can never match."""
        rule = valid_rule(
            "a",
            conditions=[
                PolicyCondition(field="x", operator=PolicyOperator.GT, value="10"),
                PolicyCondition(field="x", operator=PolicyOperator.LTE, value=True),
                PolicyCondition(field="x", operator=PolicyOperator.LT, value=2.5),
            ],
        )
        issues = validate_dsl_policy(document(rule))
        assert paths(issues, Severity.WARNING) == [
            "rules[0].conditions[0].value",
            "rules[0].conditions[1].value",
        ]

    def test_invalid_regex_warns(self) -> None:
        """A pattern that does not compile is reported."""
        rule = valid_rule(
            "a",
            conditions=[PolicyCondition(field="x", operator=PolicyOperator.MATCHES, value="(open")],
        )
        issues = validate_dsl_policy(document(rule))
        assert len(issues) == 1
        assert issues[0].message.startswith("Invalid regular expression")
        assert not has_errors(issues)


# =============================================================================
# Nested Groups
# =============================================================================


class TestNestedGroups:
    """Tests for nested group checks."""

    def test_nested_rules_are_validated(self) -> None:
        """Nested rules get the same checks with nested paths."""
        rule = valid_rule(
            "a",
            nested=NestedRules(operator=LogicalOperator.AND, rules=[DslPolicyRule(id="b")]),
        )
        issues = validate_dsl_policy(document(rule))
        assert "rules[0].nested.rules[0].name" in paths(issues, Severity.ERROR)
        assert "rules[0].nested.rules[0].action.type" in paths(issues, Severity.ERROR)

    def test_duplicate_ids_across_levels(self) -> None:
        """IDs are unique across the whole document."""
        rule = valid_rule(
            "a",
            nested=NestedRules(operator=LogicalOperator.AND, rules=[valid_rule("b")]),
        )
        issues = validate_dsl_policy(document(rule, valid_rule("b")))
        assert paths(issues) == ["rules[1].id"]

    def test_not_with_two_rules_is_error(self) -> None:
        """A 'not' group must hold exactly one rule."""
        rule = valid_rule(
            "a",
            nested=NestedRules(operator=LogicalOperator.NOT, rules=[valid_rule("b"), valid_rule("c")]),
        )
        issues = validate_dsl_policy(document(rule))
        assert len(issues) == 1
        assert issues[0].path == "rules[0].nested.rules"
        assert issues[0].severity == Severity.ERROR
        assert "exactly one rule, found 2" in issues[0].message

    def test_empty_not_is_error(self) -> None:
        """An empty 'not' group is an error too."""
        rule = valid_rule("a", nested=NestedRules(operator=LogicalOperator.NOT))
        assert has_errors(validate_dsl_policy(document(rule)))

    def test_single_not_ok(self) -> None:
        """A 'not' group with one rule is fine."""
        rule = valid_rule("a", nested=NestedRules(operator=LogicalOperator.NOT, rules=[valid_rule("b")]))
        assert validate_dsl_policy(document(rule)) == []

    def test_empty_and_or_warns(self) -> None:
        """Empty and/or groups are warnings."""
        for operator in (LogicalOperator.AND, LogicalOperator.OR):
            rule = valid_rule("a", nested=NestedRules(operator=operator))
            issues = validate_dsl_policy(document(rule))
            assert [(i.path, i.severity) for i in issues] == [
                ("rules[0].nested.rules", Severity.WARNING)
            ]

    def test_cycle_reported(self) -> None:
        """A rule containing itself is an error and validation terminates."""
        loop_group = NestedRules(operator=LogicalOperator.AND, rules=[])
        loop = valid_rule("loop", nested=loop_group)
        loop_group.rules.append(loop)

        issues = validate_dsl_policy(document(loop))
        assert has_errors(issues)
        assert any("contains itself" in i.message for i in issues)


def chain(levels: int) -> DslPolicyRule:
    """A rule whose nested 'and' groups go `levels` deep, built without recursion."""
    rule = valid_rule(f"r{levels}")
    for n in reversed(range(levels)):
        rule = valid_rule(f"r{n}", nested=NestedRules(operator=LogicalOperator.AND, rules=[rule]))
    return rule


class TestNestingDepth:
    """Tests for the nesting depth limit."""

    def test_within_default_limit(self) -> None:
        """Nesting up to max_nesting_depth is clean."""
        assert validate_dsl_policy(document(chain(32))) == []

    def test_beyond_default_limit(self) -> None:
        """One level past the limit is an error on the deepest allowed group."""
        issues = validate_dsl_policy(document(chain(33)))
        assert len(issues) == 1
        assert issues[0].severity == Severity.ERROR
        assert issues[0].path == "rules[0]" + ".nested.rules[0]" * 32 + ".nested"
        assert issues[0].message == "Rule nesting exceeds 32 levels"

    def test_pathological_depth_does_not_raise(self) -> None:
        """Very deep documents produce an issue instead of RecursionError."""
        issues = validate_dsl_policy(document(chain(1500)))
        assert has_errors(issues)
        assert [i.message for i in issues] == ["Rule nesting exceeds 32 levels"]

    def test_custom_limit(self) -> None:
        """The limit follows the given EvaluatorConfig."""
        config = EvaluatorConfig(max_nesting_depth=2)
        assert validate_dsl_policy(document(chain(2)), config) == []
        issues = validate_dsl_policy(document(chain(3)), config)
        assert paths(issues) == ["rules[0].nested.rules[0].nested.rules[0].nested"]
