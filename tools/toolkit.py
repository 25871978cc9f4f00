# =============================================================================
# tools/toolkit.py  —  The Five MCP Tools (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines every tool the orchestrating client can call.  Each tool is a
#   thin wrapper around a core/ gateway — it logs the call, delegates, and
#   turns a core error into a structured MCP tool error.
#
# HOW IT WORKS (the flow):
#   1. The client decides it needs something (e.g., the text of a policy)
#   2. It calls a tool by name via MCP (e.g., "fetch_blob_text")
#   3. FastMCP routes the call to the bound AuditToolkit method below
#   4. The method calls exactly one gateway, which makes exactly one
#      network call, and returns its text
#
# TOOL NAMING CONVENTIONS:
#   - analyze_* / generate_* → ask the completion backend to think
#   - fetch_* / query_*      → read-only retrieval from Azure
#   - check_*                → read-only yes/no inspection
#   All tools are read-only against Azure.  Nothing here writes.
#
# ERRORS:
#   A GatewayError becomes fastmcp's ToolError("<Kind>: <message>").  The
#   client sees isError=true with that text; the server keeps running.
#   Cancelled is a CancelledError and is allowed to unwind the task.
# =============================================================================

import logging
from contextlib import contextmanager
from typing import Annotated, Optional

from fastmcp.exceptions import ToolError
from pydantic import Field

from core import compliance
from core.blobs import BlobTextFetcher
from core.completion import CompletionGateway
from core.errors import Cancelled, GatewayError
from core.log_analytics import LogAnalyticsQuerier
from core.storage_accounts import StorageEncryptionInspector
from tools.registry import ToolRegistry, ToolSpec

logger = logging.getLogger("tools")

# ANSI color codes for terminal output (stderr only — stdout is the MCP pipe)
_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RED = "\033[31m"      # Errors
_RESET = "\033[0m"

_PREVIEW_CHARS = 200


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={_shorten(v)!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: str) -> str:
    """Log a preview of the tool's text result in GREEN, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response ({len(result)} chars): {_shorten(result)!r}{_RESET}")
    return result


def _shorten(value):
    if isinstance(value, str) and len(value) > _PREVIEW_CHARS:
        return value[:_PREVIEW_CHARS] + "…"
    return value


@contextmanager
def tool_errors(tool_name: str):
    """Convert core errors into MCP tool errors at the tool boundary."""
    try:
        yield
    except GatewayError as exc:
        logger.warning(f"{_RED}  ✗ {tool_name} failed: {exc.describe()}{_RESET}")
        raise ToolError(exc.describe()) from exc
    except Cancelled as exc:
        logger.info(f"{_YELLOW}  ✗ {tool_name} cancelled: {exc}{_RESET}")
        raise


# =============================================================================
# Tool descriptions — the LLM reads these to decide WHEN to call each tool
# =============================================================================
ANALYZE_COMPLIANCE = (
    "Analyze the document for compliance with RODO/ISO/SOC2. "
    "Returns risks and vulnerabilities, consequences, remediation "
    "recommendations and a 'What to fix first' section."
)
GENERATE_AUDIT_REPORT = (
    "Generates an audit report based on tool findings. Findings may be JSON "
    "or plain text; they are passed to the report writer verbatim."
)
FETCH_BLOB_TEXT = (
    "Downloads a text file from Azure Blob Storage. Supported encodings: "
    "utf8 (default), utf-8, ascii; anything else falls back to UTF-8."
)
QUERY_MONITOR_LOGS = (
    "Executes a KQL query in Log Analytics and returns results as text/CSV. "
    "Only the first result table is returned; 'No results' when there is none."
)
CHECK_STORAGE_ENCRYPTION = (
    "Checks if Storage Account has encryption enabled. Returns "
    "'Encryption BLOB: Turned On' or 'Encryption BLOB: Turned Off'."
)


class AuditToolkit:
    """The tool handlers, bound to gateways created at startup."""

    def __init__(
        self,
        completion: CompletionGateway,
        blobs: BlobTextFetcher,
        logs: LogAnalyticsQuerier,
        storage: StorageEncryptionInspector,
    ) -> None:
        self._completion = completion
        self._blobs = blobs
        self._logs = logs
        self._storage = storage

    # -------------------------------------------------------------------------
    # TOOL 1: analyze_compliance
    # -------------------------------------------------------------------------
    async def analyze_compliance(
        self,
        document_content: Annotated[str, Field(
            description="The content of the document to analyze. Must not be empty.")],
        standard: Annotated[Optional[str], Field(
            description="Standard(s) to evaluate against, e.g. 'ISO 27001'. "
                        "Blank means RODO, ISO 27001 and SOC 2.")] = None,
    ) -> str:
        _log_request("analyze_compliance",
                     document_content=document_content, standard=standard)
        with tool_errors("analyze_compliance"):
            result = await compliance.analyze_compliance(
                self._completion, document_content, standard
            )
        return _log_response("analyze_compliance", result)

    # -------------------------------------------------------------------------
    # TOOL 2: generate_audit_report
    # -------------------------------------------------------------------------
    async def generate_audit_report(
        self,
        findings_json_or_text: Annotated[str, Field(
            description="Raw findings to include, as a JSON string or plain text.")],
        scope: Annotated[str, Field(
            description="Scope of the audit: the areas or systems covered.")],
        timeframe: Annotated[str, Field(
            description="Period under review, e.g. 'Q3 2025'.")],
    ) -> str:
        _log_request("generate_audit_report",
                     findings_json_or_text=findings_json_or_text,
                     scope=scope, timeframe=timeframe)
        with tool_errors("generate_audit_report"):
            result = await compliance.generate_audit_report(
                self._completion, findings_json_or_text, scope, timeframe
            )
        return _log_response("generate_audit_report", result)

    # -------------------------------------------------------------------------
    # TOOL 3: fetch_blob_text
    # -------------------------------------------------------------------------
    async def fetch_blob_text(
        self,
        container_name: Annotated[str, Field(
            description="Blob Storage container holding the file.")],
        blob_name: Annotated[str, Field(
            description="Name (path) of the blob to download.")],
        encoding: Annotated[Optional[str], Field(
            description="Text encoding: 'utf8' (default), 'utf-8' or 'ascii'.")] = "utf8",
    ) -> str:
        _log_request("fetch_blob_text", container_name=container_name,
                     blob_name=blob_name, encoding=encoding)
        with tool_errors("fetch_blob_text"):
            result = await self._blobs.fetch(container_name, blob_name, encoding)
        _log_status(f"decoded {len(result)} characters")
        return _log_response("fetch_blob_text", result)

    # -------------------------------------------------------------------------
    # TOOL 4: query_monitor_logs
    # -------------------------------------------------------------------------
    async def query_monitor_logs(
        self,
        workspace_id: Annotated[str, Field(
            description="Log Analytics workspace ID to query.")],
        kql: Annotated[str, Field(
            description="The KQL (Kusto Query Language) query to execute.")],
        timespan: Annotated[str, Field(
            description="Lookback window as an ISO-8601 duration, e.g. 'P1D', 'PT6H'.")] = "P1D",
        as_csv: Annotated[bool, Field(
            description="True for comma-separated output, False for ' | ' delimited.")] = True,
    ) -> str:
        _log_request("query_monitor_logs", workspace_id=workspace_id,
                     kql=kql, timespan=timespan, as_csv=as_csv)
        with tool_errors("query_monitor_logs"):
            result = await self._logs.query(workspace_id, kql, timespan, as_csv)
        return _log_response("query_monitor_logs", result)

    # -------------------------------------------------------------------------
    # TOOL 5: check_storage_encryption
    # -------------------------------------------------------------------------
    async def check_storage_encryption(
        self,
        subscription_id: Annotated[str, Field(
            description="Subscription ID containing the storage account.")],
        resource_group: Annotated[str, Field(
            description="Resource group containing the storage account.")],
        storage_account_name: Annotated[str, Field(
            description="Name of the storage account to check.")],
    ) -> str:
        _log_request("check_storage_encryption", subscription_id=subscription_id,
                     resource_group=resource_group,
                     storage_account_name=storage_account_name)
        with tool_errors("check_storage_encryption"):
            result = await self._storage.check(
                subscription_id, resource_group, storage_account_name
            )
        return _log_response("check_storage_encryption", result)

    def specs(self) -> list[ToolSpec]:
        return [
            ToolSpec("analyze_compliance", ANALYZE_COMPLIANCE,
                     self.analyze_compliance, frozenset({"completion"})),
            ToolSpec("generate_audit_report", GENERATE_AUDIT_REPORT,
                     self.generate_audit_report, frozenset({"completion"})),
            ToolSpec("fetch_blob_text", FETCH_BLOB_TEXT,
                     self.fetch_blob_text, frozenset({"azure", "storage"})),
            ToolSpec("query_monitor_logs", QUERY_MONITOR_LOGS,
                     self.query_monitor_logs, frozenset({"azure", "monitor"})),
            ToolSpec("check_storage_encryption", CHECK_STORAGE_ENCRYPTION,
                     self.check_storage_encryption, frozenset({"azure", "storage"})),
        ]


def build_registry(toolkit: AuditToolkit) -> ToolRegistry:
    return ToolRegistry(toolkit.specs())
