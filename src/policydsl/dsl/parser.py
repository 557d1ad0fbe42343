"""
Condition parser for the policy DSL.

Two parsing entry points share the lexer:

    parse_condition / parse_conditions
        The flat condition grammar: "field operator value", optionally
        several of them joined by "and" / "&&". The split is a plain regex
        over the text, so it understands neither parentheses nor "or", and
        it also splits inside quoted strings containing " and ".

    parse_expression
        A recursive-descent parser for full boolean expressions:

            expression := or_expr
            or_expr    := and_expr (("or" | "||") and_expr)*
            and_expr   := unary (("and" | "&&") unary)*
            unary      := ("not" | "!") unary | primary
            primary    := "(" expression ")" | condition
            condition  := IDENTIFIER OPERATOR value

        The resulting tree can be evaluated directly (evaluate_expression in
        policydsl.policy.conditions) or compiled into nested rules
        (expression_to_rule).
"""

import re
from dataclasses import dataclass
from typing import assert_never

from policydsl.dsl.lexer import (
    BooleanToken,
    EofToken,
    IdentifierToken,
    LogicalToken,
    NumberToken,
    OperatorToken,
    PunctuationToken,
    StringToken,
    Token,
    TokenKind,
    describe_token,
    tokenize,
)
from policydsl.errors import ConditionParseError
from policydsl.schema import (
    DslPolicyAction,
    DslPolicyRule,
    LogicalOperator,
    NestedRules,
    PolicyCondition,
)


_AND_SPLIT = re.compile(r"\s+(?:and|&&)\s+", re.IGNORECASE)


# =============================================================================
# Flat Conditions
# =============================================================================


def parse_condition(dsl: str) -> PolicyCondition:
    """
    Parse a single "field operator value" condition.

    Args:
        dsl: Condition text, e.g. 'resource.attributes.size >= 100'

    Returns:
        The parsed PolicyCondition

    Raises:
        DslSyntaxError: If the text cannot be tokenized
        ConditionParseError: If the tokens are not exactly field, operator,
            value (a missing value or trailing tokens are errors)
    """
    tokens = tokenize(dsl)
    parser = _TokenStream(tokens, dsl)
    condition = parser.condition()
    parser.expect_end()
    return condition


def parse_conditions(dsl: str) -> list[PolicyCondition]:
    """
    Parse conditions joined by "and" / "&&" into a list (ANDed).

    Each segment is parsed independently with parse_condition; the first
    segment that fails raises and no partial list is returned.
    """
    return [parse_condition(part.strip()) for part in _AND_SPLIT.split(dsl)]


# =============================================================================
# Expressions
# =============================================================================


@dataclass(frozen=True)
class ConditionExpr:
    condition: PolicyCondition


@dataclass(frozen=True)
class AndExpr:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class OrExpr:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class NotExpr:
    operand: "Expression"


Expression = ConditionExpr | AndExpr | OrExpr | NotExpr


def parse_expression(dsl: str) -> Expression:
    """
    Parse a boolean expression over conditions.

    Precedence from tightest: not, and, or. Parentheses group.

    Example:
        parse_expression('actor.type == "user" and (action == "read" or not resource.id exists true)')

    Raises:
        DslSyntaxError: If the text cannot be tokenized or parsed
    """
    parser = _TokenStream(tokenize(dsl), dsl)
    expression = parser.expression()
    parser.expect_end()
    return expression


def expression_to_rule(
    expression: Expression,
    id: str,
    name: str,
    action: DslPolicyAction,
    priority: int = 100,
) -> DslPolicyRule:
    """
    Compile an expression into an equivalent rule tree.

    Conditions become leaf rules, "and"/"or" become nested groups and "not"
    becomes a single-operand nested "not" group. Sub-rules get derived IDs
    (<id>.1, <id>.1.2, ...) and reuse the given action.
    """
    match expression:
        case ConditionExpr(condition=condition):
            return DslPolicyRule(
                id=id, name=name, conditions=[condition], action=action, priority=priority,
            )
        case AndExpr(operands=operands) | OrExpr(operands=operands):
            operator = LogicalOperator.AND if isinstance(expression, AndExpr) else LogicalOperator.OR
            children = [
                expression_to_rule(operand, f"{id}.{index}", name, action, priority)
                for index, operand in enumerate(operands, start=1)
            ]
        case NotExpr(operand=operand):
            operator = LogicalOperator.NOT
            children = [expression_to_rule(operand, f"{id}.1", name, action, priority)]
        case _:
            assert_never(expression)

    return DslPolicyRule(
        id=id,
        name=name,
        nested=NestedRules(operator=operator, rules=children),
        action=action,
        priority=priority,
    )


# =============================================================================
# Token Stream
# =============================================================================


class _TokenStream:
    """Cursor over a token list with the grammar productions."""

    def __init__(self, tokens: list[Token], source: str) -> None:
        self._tokens = tokens
        self._source = source
        self._index = 0

    def _current(self) -> Token:
        return self._tokens[self._index]

    def _next(self) -> Token:
        token = self._tokens[self._index]
        if not isinstance(token, EofToken):
            self._index += 1
        return token

    def _error(self, message: str, token: Token) -> ConditionParseError:
        return ConditionParseError(
            message=message,
            line=token.line,
            column=token.column,
            source=self._source,
        )

    def expect_end(self) -> None:
        token = self._current()
        if not isinstance(token, EofToken):
            raise self._error(f"Unexpected {describe_token(token)} after condition", token)

    def condition(self) -> PolicyCondition:
        field_token = self._next()
        if isinstance(field_token, EofToken):
            raise self._error('Invalid condition: expected "field operator value"', field_token)
        if not isinstance(field_token, IdentifierToken):
            raise self._error(
                f"Expected identifier for field, got {describe_token(field_token)}", field_token
            )

        operator_token = self._next()
        if not isinstance(operator_token, OperatorToken):
            raise self._error(
                f"Expected operator, got {describe_token(operator_token)}", operator_token
            )

        value_token = self._next()
        match value_token:
            case StringToken(value=value) | NumberToken(value=value) | BooleanToken(value=value):
                literal: object = value
            case IdentifierToken(name=name):
                literal = name
            case _:
                raise self._error(f"Expected value, got {describe_token(value_token)}", value_token)

        return PolicyCondition(
            field=field_token.name,
            operator=operator_token.operator,
            value=literal,
        )

    def expression(self) -> Expression:
        return self._or_expr()

    def _or_expr(self) -> Expression:
        operands = [self._and_expr()]
        while self._at_logical(LogicalOperator.OR):
            self._next()
            operands.append(self._and_expr())
        return operands[0] if len(operands) == 1 else OrExpr(tuple(operands))

    def _and_expr(self) -> Expression:
        operands = [self._unary()]
        while self._at_logical(LogicalOperator.AND):
            self._next()
            operands.append(self._unary())
        return operands[0] if len(operands) == 1 else AndExpr(tuple(operands))

    def _unary(self) -> Expression:
        if self._at_logical(LogicalOperator.NOT):
            self._next()
            return NotExpr(self._unary())
        return self._primary()

    def _primary(self) -> Expression:
        token = self._current()
        if isinstance(token, PunctuationToken) and token.kind == TokenKind.LPAREN:
            self._next()
            inner = self.expression()
            closing = self._next()
            if not (isinstance(closing, PunctuationToken) and closing.kind == TokenKind.RPAREN):
                raise self._error(f"Expected ')', got {describe_token(closing)}", closing)
            return inner
        return ConditionExpr(self.condition())

    def _at_logical(self, operator: LogicalOperator) -> bool:
        token = self._current()
        return isinstance(token, LogicalToken) and token.operator == operator
