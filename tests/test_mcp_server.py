import asyncio
import logging
import sys

import pytest
from azure.core.exceptions import ResourceNotFoundError
from fastmcp import Client
from fastmcp.exceptions import ToolError

from core.blobs import BlobTextFetcher
from core.errors import Cancelled
from core.log_analytics import LogAnalyticsQuerier
from core.storage_accounts import StorageEncryptionInspector
from tools import mcp_server
from tools.mcp_server import SERVER_NAME, configure_logging, create_server
from tools.toolkit import AuditToolkit, build_registry
from tests.conftest import FakeManagementFactory

EXPECTED_TOOLS = [
    "analyze_compliance",
    "generate_audit_report",
    "fetch_blob_text",
    "query_monitor_logs",
    "check_storage_encryption",
]


def test_registry_lists_exactly_the_five_tools_in_order(toolkit) -> None:
    registry = build_registry(toolkit)

    assert registry.names() == EXPECTED_TOOLS
    assert [tool.name for tool in registry.list()] == EXPECTED_TOOLS
    assert all(tool.description.strip() for tool in registry.list())
    assert build_registry(toolkit).describe() == registry.describe()


def test_registry_parameter_schemas(toolkit) -> None:
    registry = build_registry(toolkit)

    analyze = {p.name: p for p in registry.get("analyze_compliance").parameters()}
    assert list(analyze) == ["document_content", "standard"]
    assert analyze["document_content"].required
    assert not analyze["standard"].required and analyze["standard"].default is None

    logs = {p.name: p for p in registry.get("query_monitor_logs").parameters()}
    assert logs["timespan"].default == "P1D"
    assert logs["as_csv"].type == "boolean"
    assert logs["as_csv"].default is True
    assert all(p.description for p in logs.values())

    blob = {p.name: p for p in registry.get("fetch_blob_text").parameters()}
    assert blob["encoding"].default == "utf8"


def test_unknown_tool_is_a_key_error(toolkit) -> None:
    registry = build_registry(toolkit)

    with pytest.raises(KeyError, match="Unknown tool"):
        registry.get("delete_everything")
    assert "delete_everything" not in registry


async def test_discovery_over_mcp(toolkit) -> None:
    mcp = create_server(build_registry(toolkit))

    async with Client(mcp) as client:
        tools = await client.list_tools()

    assert mcp.name == SERVER_NAME
    assert sorted(t.name for t in tools) == sorted(EXPECTED_TOOLS)
    by_name = {t.name: t for t in tools}
    assert all(t.description for t in tools)
    schema = by_name["query_monitor_logs"].model_dump(by_alias=True)["inputSchema"]
    assert set(schema["required"]) == {"workspace_id", "kql"}
    assert "self" not in schema["properties"]


async def test_query_monitor_logs_over_mcp(toolkit) -> None:
    async with Client(create_server(build_registry(toolkit))) as client:
        result = await client.call_tool(
            "query_monitor_logs", {"workspace_id": "ws-1", "kql": "T | take 1"}
        )

    assert result.content[0].text == "Name,Note\nx,a;b\n"


async def test_analyze_compliance_over_mcp(toolkit, transport) -> None:
    async with Client(create_server(build_registry(toolkit))) as client:
        result = await client.call_tool(
            "analyze_compliance", {"document_content": "MFA is optional.", "standard": "SOC 2"}
        )

    assert result.content[0].text == "ok"
    body = transport.last_body
    assert body["temperature"] == 0.2
    assert "against: SOC 2." in body["messages"][0]["content"]


async def test_fetch_and_check_over_mcp(toolkit) -> None:
    async with Client(create_server(build_registry(toolkit))) as client:
        blob = await client.call_tool(
            "fetch_blob_text", {"container_name": "docs", "blob_name": "policy.md"}
        )
        encryption = await client.call_tool(
            "check_storage_encryption",
            {"subscription_id": "sub", "resource_group": "rg", "storage_account_name": "acct"},
        )

    assert blob.content[0].text == "Zażółć policy"
    assert encryption.content[0].text == "Encryption BLOB: Turned On"


async def test_empty_document_is_a_structured_tool_error(toolkit, transport) -> None:
    async with Client(create_server(build_registry(toolkit))) as client:
        with pytest.raises(ToolError, match="InvalidArgument"):
            await client.call_tool("analyze_compliance", {"document_content": "  "})

        # The server survives the failed call.
        result = await client.call_tool("generate_audit_report", {
            "findings_json_or_text": "[]", "scope": "all", "timeframe": "2025",
        })

    assert result.content[0].text == "ok"
    assert len(transport.requests) == 1


async def test_not_found_is_a_structured_tool_error(gateway, blob_service, logs_client) -> None:
    missing = FakeManagementFactory(error=ResourceNotFoundError("ResourceGroupNotFound"))
    toolkit = AuditToolkit(
        completion=gateway,
        blobs=BlobTextFetcher(blob_service),
        logs=LogAnalyticsQuerier(logs_client),
        storage=StorageEncryptionInspector(missing),
    )

    async with Client(create_server(build_registry(toolkit))) as client:
        with pytest.raises(ToolError, match="NotFound"):
            await client.call_tool("check_storage_encryption", {
                "subscription_id": "sub", "resource_group": "nope", "storage_account_name": "acct",
            })


async def test_bad_timespan_is_a_structured_tool_error(toolkit, logs_client) -> None:
    async with Client(create_server(build_registry(toolkit))) as client:
        with pytest.raises(ToolError, match="InvalidArgument"):
            await client.call_tool("query_monitor_logs", {
                "workspace_id": "ws-1", "kql": "T", "timespan": "one day",
            })

    assert logs_client.calls == []


async def test_cancelled_handler_is_not_converted_to_tool_error(toolkit) -> None:
    class HangingGateway:
        async def complete(self, prompt, temperature=0.2, max_tokens=2000):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError as exc:
                raise Cancelled("completion request was cancelled") from exc

    toolkit._completion = HangingGateway()
    task = asyncio.create_task(toolkit.analyze_compliance("document"))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


def test_logging_goes_to_stderr() -> None:
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, list(root.handlers)
    try:
        configure_logging("DEBUG")

        ours = [h for h in root.handlers if h.formatter and "[MCP]" in (h.formatter._fmt or "")]
        assert root.level == logging.DEBUG
        assert ours and all(h.stream is sys.stderr for h in ours)
        assert logging.getLogger("azure").level == logging.WARNING
    finally:
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)


def test_missing_configuration_exits_with_status_one(monkeypatch, capsys) -> None:
    monkeypatch.setattr(mcp_server, "load_dotenv", lambda: None)
    monkeypatch.setattr(mcp_server, "configure_logging", lambda level: None)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("AZURE_BLOB_ENDPOINT", "https://acct.blob.core.windows.net")

    with pytest.raises(SystemExit) as excinfo:
        mcp_server.main()

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "configuration error" in err
    assert "ANTHROPIC_API_KEY" in err
