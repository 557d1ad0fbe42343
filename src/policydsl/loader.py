"""
YAML loading helpers for policy documents and evaluation contexts.

The engine itself never performs I/O; this module is the boundary used by
the CLI and by callers that keep policies as YAML (JSON is valid YAML).

Conditions inside a rule may be written either as mappings or as DSL
strings:

    rules:
      - id: admins
        name: Admins may deploy
        priority: 10
        action: {type: allow}
        conditions:
          - 'actor.type == "user"'            # DSL string
          - field: action                      # mapping
            operator: eq
            value: deploy

A DSL string that fails to parse rejects the whole document: a malformed
rule is never silently dropped.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from policydsl.dsl import parse_condition
from policydsl.errors import DslSyntaxError, PolicyLoadError
from policydsl.schema import DslPolicyContext, DslPolicyDocument


def load_policy_document(path: Path | str) -> DslPolicyDocument:
    """
    Load a policy document from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated DslPolicyDocument

    Raises:
        FileNotFoundError: If the file doesn't exist
        PolicyLoadError: If the YAML, a DSL condition or the schema is invalid
    """
    path = Path(path)
    with path.open() as f:
        return load_policy_document_from_string(f.read(), source=str(path))


def load_policy_document_from_string(
    content: str,
    source: str = "<string>",
) -> DslPolicyDocument:
    """Load a policy document from a YAML string."""
    data = _load_mapping(content, source)
    try:
        data = _expand_document(data)
    except DslSyntaxError as e:
        raise PolicyLoadError(source=source, underlying_error=str(e)) from e

    try:
        return DslPolicyDocument.model_validate(data)
    except ValidationError as e:
        raise PolicyLoadError(source=source, underlying_error=str(e)) from e


def load_context(path: Path | str) -> DslPolicyContext:
    """
    Load an evaluation context from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        PolicyLoadError: If the YAML or the schema is invalid
    """
    path = Path(path)
    with path.open() as f:
        return load_context_from_string(f.read(), source=str(path))


def load_context_from_string(content: str, source: str = "<string>") -> DslPolicyContext:
    """Load an evaluation context from a YAML string."""
    data = _load_mapping(content, source)
    try:
        return DslPolicyContext.model_validate(data)
    except ValidationError as e:
        raise PolicyLoadError(source=source, underlying_error=str(e)) from e


def _load_mapping(content: str, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyLoadError(source=source, underlying_error=f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise PolicyLoadError(
            source=source,
            underlying_error=f"Expected a mapping at top level, got {type(data).__name__}",
        )
    return data


def _expand_document(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the raw document with DSL condition strings parsed."""
    rules = data.get("rules")
    if not isinstance(rules, list):
        return data
    return {**data, "rules": [_expand_rule(rule, f"rules[{i}]") for i, rule in enumerate(rules)]}


def _expand_rule(rule: Any, path: str) -> Any:
    if not isinstance(rule, dict):
        return rule

    expanded = dict(rule)

    conditions = rule.get("conditions")
    if isinstance(conditions, list):
        expanded["conditions"] = [
            _expand_condition(condition, f"{path}.conditions[{j}]")
            for j, condition in enumerate(conditions)
        ]

    nested = rule.get("nested")
    if isinstance(nested, dict) and isinstance(nested.get("rules"), list):
        expanded["nested"] = {
            **nested,
            "rules": [
                _expand_rule(child, f"{path}.nested.rules[{k}]")
                for k, child in enumerate(nested["rules"])
            ],
        }

    return expanded


def _expand_condition(condition: Any, path: str) -> Any:
    if not isinstance(condition, str):
        return condition
    try:
        parsed = parse_condition(condition)
    except DslSyntaxError as e:
        e.message = f"{path}: {e.message}"
        e.context["path"] = path
        raise
    return parsed.model_dump()
