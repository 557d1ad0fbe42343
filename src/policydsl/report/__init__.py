"""
Reporting module for policydsl.

Renders evaluation results and validation findings.

Output formats:
    - Console: Rich terminal output with decision panel and issue table
    - JSON: Structured output for audit sinks and tooling

Example:
    from policydsl.report import generate_json_report, print_result

    result = evaluate_dsl_policy(document, context)
    print_result(result)
    audit_sink.write(generate_json_report(result))
"""

from policydsl.report.console import print_issues, print_result
from policydsl.report.json import build_issues_dict, build_result_dict, generate_json_report

__all__ = [
    "build_issues_dict",
    "build_result_dict",
    "generate_json_report",
    "print_issues",
    "print_result",
]
