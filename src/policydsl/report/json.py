"""
JSON report generator for policydsl.

Serializes decisions (with their audit records) and validation issues for
audit-log sinks and other programmatic consumers.

Design Principles:
    - Complete data: The audit record includes the full context
    - Consistent schema: Same structure for matched and default decisions
    - Wire names: camelCase keys, matching the document format
    - ISO timestamps: Standard datetime format
"""

import json
from datetime import UTC, datetime
from typing import Any

from policydsl.schema import DslPolicyResult, Severity, ValidationIssue


def build_result_dict(result: DslPolicyResult) -> dict[str, Any]:
    """
    Build a JSON-ready dictionary for a decision.

    Args:
        result: The evaluation result

    Returns:
        Dictionary with the decision, reasons and audit record
    """
    report = result.model_dump(mode="json", by_alias=True)
    return {
        "report_version": "1.0",
        "generated_at": datetime.now(UTC).isoformat(),
        "decision": report,
    }


def generate_json_report(result: DslPolicyResult, indent: int = 2) -> str:
    """Serialize a decision to a JSON string (see build_result_dict)."""
    return json.dumps(build_result_dict(result), indent=indent)


def build_issues_dict(source: str, issues: list[ValidationIssue]) -> dict[str, Any]:
    """Build a JSON-ready dictionary for validation findings."""
    errors = [issue for issue in issues if issue.severity == Severity.ERROR]
    return {
        "source": source,
        "valid": not errors,
        "error_count": len(errors),
        "warning_count": len(issues) - len(errors),
        "issues": [issue.model_dump(mode="json") for issue in issues],
    }
