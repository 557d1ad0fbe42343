"""
Exception hierarchy for policydsl.

All policydsl exceptions inherit from PolicyDslError, allowing callers to catch
every engine failure with a single except clause.

Exception Categories:
    - DslSyntaxError: DSL text could not be tokenized or parsed
    - PolicyEvaluationError: Evaluation aborted on malformed structure
    - PolicyLoadError: A document or context could not be loaded

Operator type mismatches are NOT errors: they evaluate to False. Validator
findings are returned as data, not raised.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Syntax errors: 1xxx
ERROR_SYNTAX = 1001
ERROR_UNEXPECTED_CHARACTER = 1002
ERROR_UNTERMINATED_STRING = 1003
ERROR_INVALID_NUMBER = 1004
ERROR_CONDITION_PARSE = 1005

# Evaluation errors: 2xxx
ERROR_EVALUATION = 2001
ERROR_RULE_NESTING = 2002

# Loading errors: 3xxx
ERROR_LOAD = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class PolicyDslError(Exception):
    """
    Base exception for all policydsl errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Syntax Errors
# =============================================================================


@dataclass
class DslSyntaxError(PolicyDslError):
    """
    Raised when DSL text cannot be tokenized or parsed.

    Syntax errors are fatal: a document containing text that fails to parse
    must be rejected as a whole.

    Attributes:
        line: 1-based line of the offending input (0 when unknown)
        column: 1-based column of the offending input (0 when unknown)
        source: The DSL text being processed
    """

    line: int = 0
    column: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_SYNTAX
        if self.line and f"line {self.line}" not in self.message:
            self.message = f"{self.message} at line {self.line}, column {self.column}"
        self.context.update({
            "line": self.line,
            "column": self.column,
            "source": self.source,
        })


@dataclass
class UnexpectedCharacterError(DslSyntaxError):
    """Raised when the lexer meets a character that starts no token."""

    character: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unexpected character '{self.character}'"
        if self.code == 0:
            self.code = ERROR_UNEXPECTED_CHARACTER
        super().__post_init__()
        self.context["character"] = self.character


@dataclass
class UnterminatedStringError(DslSyntaxError):
    """Raised when a quoted string reaches end of input."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Unterminated string"
        if self.code == 0:
            self.code = ERROR_UNTERMINATED_STRING
        if not self.suggestion:
            self.suggestion = "Close the string with the same quote it was opened with"
        super().__post_init__()


@dataclass
class InvalidNumberError(DslSyntaxError):
    """Raised when a numeric literal is not a valid number (e.g. 1.2.3)."""

    literal: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid number '{self.literal}'"
        if self.code == 0:
            self.code = ERROR_INVALID_NUMBER
        super().__post_init__()
        self.context["literal"] = self.literal


@dataclass
class ConditionParseError(DslSyntaxError):
    """Raised when tokens do not form a valid condition or expression."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_CONDITION_PARSE
        if not self.suggestion:
            self.suggestion = 'Conditions have the form: field operator value (e.g. actor.type == "user")'
        super().__post_init__()


# =============================================================================
# Evaluation Errors
# =============================================================================


@dataclass
class PolicyEvaluationError(PolicyDslError):
    """
    Raised when evaluation cannot proceed.

    Only structural problems raise; operator type mismatches evaluate to
    False. Callers should fail closed (deny) on this error.

    Attributes:
        rule_id: ID of the rule being evaluated (if applicable)
    """

    rule_id: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_EVALUATION
        self.context["rule_id"] = self.rule_id


@dataclass
class RuleNestingError(PolicyEvaluationError):
    """Raised when nested rules are cyclic or nest deeper than allowed."""

    depth: int = 0
    max_depth: int = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Rule nesting exceeds maximum depth of {self.max_depth} "
                f"(rule: {self.rule_id})"
            )
        if self.code == 0:
            self.code = ERROR_RULE_NESTING
        if not self.suggestion:
            self.suggestion = "Flatten nested rules or raise max_nesting_depth"
        super().__post_init__()
        self.context.update({
            "depth": self.depth,
            "max_depth": self.max_depth,
        })


# =============================================================================
# Loading Errors
# =============================================================================


@dataclass
class PolicyLoadError(PolicyDslError):
    """
    Raised when a policy document or context cannot be loaded.

    Attributes:
        source: File path or "<string>" for in-memory input
        underlying_error: Text of the YAML, schema or DSL error
    """

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to load {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_LOAD
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })
