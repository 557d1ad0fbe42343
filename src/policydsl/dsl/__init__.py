"""
DSL front end for policydsl: lexer and condition parser.

The DSL expresses single conditions as "field operator value":

    actor.type == "user"
    resource.attributes.size >= 100
    resource.attributes.name matches "^prod-"

parse_conditions joins several with "and" / "&&"; parse_expression also
understands "or", "not" and parentheses.
"""

from policydsl.dsl.lexer import PolicyLexer, Token, TokenKind, tokenize
from policydsl.dsl.parser import (
    AndExpr,
    ConditionExpr,
    Expression,
    NotExpr,
    OrExpr,
    expression_to_rule,
    parse_condition,
    parse_conditions,
    parse_expression,
)

__all__ = [
    "PolicyLexer",
    "Token",
    "TokenKind",
    "tokenize",
    "AndExpr",
    "ConditionExpr",
    "Expression",
    "NotExpr",
    "OrExpr",
    "expression_to_rule",
    "parse_condition",
    "parse_conditions",
    "parse_expression",
]
