# =============================================================================
# tools/mcp_server.py  —  FastMCP Process Host (stdio)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Boots the tool server:
#     1. Loads .env and reads ServerConfig (fail fast if anything required
#        is missing)
#     2. Builds the Azure credential chain and the long-lived clients
#        (httpx for the completion backend, Blob, Log Analytics)
#     3. Binds the five tools to those clients (tools/toolkit.py)
#     4. Registers every tool on a FastMCP server and serves over stdio
#
# RUNNING THIS SERVER:
#     a) Standalone:            python -m tools.mcp_server
#     b) Console script:        compliance-mcp
#     c) From the agent:        agent/auditor_agent.py spawns (a) as a
#                               subprocess and talks to it over stdio
#
# LIFETIME:
#   Everything built in serve() lives as long as the process and is only
#   ever read by the tools.  All clients are closed when the server exits.
# =============================================================================

import asyncio
import logging
import os
import sys

import httpx
from azure.monitor.query.aio import LogsQueryClient
from azure.storage.blob.aio import BlobServiceClient
from dotenv import load_dotenv
from fastmcp import FastMCP

from core.blobs import BlobTextFetcher
from core.completion import CompletionGateway
from core.config import ServerConfig
from core.credentials import create_credential
from core.errors import ConfigError
from core.log_analytics import LogAnalyticsQuerier
from core.storage_accounts import StorageEncryptionInspector
from tools.registry import ToolRegistry
from tools.toolkit import AuditToolkit, build_registry

SERVER_NAME = "compliance-auditor"

logger = logging.getLogger("tools")


# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server communicates with the client via
# STDOUT.  A log line on stdout would corrupt the JSON-RPC stream.
# =============================================================================
def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # The SDKs log every HTTP request at INFO
    for noisy in ("azure", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def create_server(registry: ToolRegistry) -> FastMCP:
    """Register every tool in the registry on a fresh FastMCP server."""
    mcp = FastMCP(SERVER_NAME)
    for spec in registry.list():
        mcp.tool(
            spec.handler,
            name=spec.name,
            description=spec.description,
            tags=set(spec.tags),
        )
        logger.debug("registered tool %s", spec.name)
    return mcp


async def serve(config: ServerConfig) -> None:
    credential = create_credential(config.credential_chain, os.environ)

    async with credential, \
            httpx.AsyncClient(timeout=config.completion_timeout_s) as http, \
            BlobServiceClient(config.blob_endpoint, credential=credential) as blob_service, \
            LogsQueryClient(credential) as logs_client:
        toolkit = AuditToolkit(
            completion=CompletionGateway(
                http, config.anthropic_api_key, config.model, config.completion_url
            ),
            blobs=BlobTextFetcher(blob_service),
            logs=LogAnalyticsQuerier(logs_client),
            storage=StorageEncryptionInspector.from_credential(credential),
        )
        registry = build_registry(toolkit)
        mcp = create_server(registry)

        logger.info(
            "%s ready: %d tools (%s), model=%s",
            SERVER_NAME, len(registry), ", ".join(registry.names()), config.model,
        )
        await mcp.run_async(transport="stdio")


def main() -> None:
    load_dotenv()
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    try:
        config = ServerConfig.from_env()
        asyncio.run(serve(config))
    except ConfigError as exc:
        # Missing configuration is fatal at startup, never a per-call error.
        print(f"{SERVER_NAME}: configuration error: {exc}", file=sys.stderr)
        sys.exit(1)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    main()
