# =============================================================================
# core/compliance.py  —  Compliance Analysis & Audit Report Prompts
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The two "thinking" tools.  Both are the same shape:
#     1. Build a fixed-template prompt (pure function, easy to test)
#     2. Hand it to the CompletionGateway with a task-specific temperature
#
# TEMPERATURES:
#   - Compliance analysis: 0.2, max 2000 tokens (analytical, some latitude)
#   - Audit report:        0.1, max 3000 tokens (a report should read the
#                          same every time it is regenerated)
#
# FINDINGS ARE NEVER PARSED:
#   generate_audit_report() accepts JSON or plain text and interpolates it
#   verbatim.  The model reads structure just fine; parsing here would only
#   add a way to fail.
# =============================================================================

import logging
from typing import Optional

from core.completion import CompletionGateway
from core.errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_STANDARDS = "RODO, ISO 27001, SOC 2"

ANALYSIS_TEMPERATURE = 0.2
ANALYSIS_MAX_TOKENS = 2000
REPORT_TEMPERATURE = 0.1
REPORT_MAX_TOKENS = 3000


def resolve_standard(standard: Optional[str]) -> str:
    """Blank or missing → the default three-item list; otherwise verbatim."""
    if standard is None or not standard.strip():
        return DEFAULT_STANDARDS
    return standard


def build_compliance_prompt(document_content: str, standard: Optional[str] = None) -> str:
    standards = resolve_standard(standard)
    return (
        f"You are a compliance auditor. Evaluate the following material against: {standards}.\n"
        "Identify: (1) risks and vulnerabilities, (2) consequences, "
        "(3) remediation recommendations.\n"
        "Provide the result as a concise list + a 'What to fix first' section.\n"
        "\n"
        "============= DOCUMENT =============\n"
        f"{document_content}"
    )


def build_audit_report_prompt(findings: str, scope: str, timeframe: str) -> str:
    return (
        "Synthesize a professional compliance audit report (Executive Summary, "
        f"Methodology, Scope: {scope}, Period: {timeframe},\n"
        "Results, Risks, Recommendations, Priorities, Attachments). "
        "Here are the raw findings:\n"
        "\n"
        f"{findings}\n"
        "\n"
        "Ensure a clear structure and checklists for immediate implementation."
    )


async def analyze_compliance(
    gateway: CompletionGateway,
    document_content: str,
    standard: Optional[str] = None,
) -> str:
    """Ask the model to audit a document against one or more standards.

    Args:
        gateway: The completion backend.
        document_content: The document text; must not be empty.
        standard: e.g. "ISO 27001".  Blank means RODO, ISO 27001 and SOC 2.

    Returns:
        The model's analysis: risks, consequences, remediation, and a
        'What to fix first' section.
    """
    if document_content is None or not document_content.strip():
        raise InvalidArgument("document_content must not be empty")

    prompt = build_compliance_prompt(document_content, standard)
    logger.info("Sending document to the completion backend (%d chars)...", len(document_content))
    return await gateway.complete(
        prompt, temperature=ANALYSIS_TEMPERATURE, max_tokens=ANALYSIS_MAX_TOKENS
    )


async def generate_audit_report(
    gateway: CompletionGateway,
    findings: str,
    scope: str,
    timeframe: str,
) -> str:
    """Turn raw findings (JSON or text) into a structured audit report."""
    prompt = build_audit_report_prompt(findings, scope, timeframe)
    logger.info("Synthesizing audit report (scope=%r, period=%r)", scope, timeframe)
    return await gateway.complete(
        prompt, temperature=REPORT_TEMPERATURE, max_tokens=REPORT_MAX_TOKENS
    )
