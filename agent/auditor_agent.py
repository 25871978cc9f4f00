# =============================================================================
# agent/auditor_agent.py  —  Google ADK Agent wired to our MCP tool server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Configures the orchestrating client: a Google ADK agent whose reasoning
#   engine is reached through LiteLlm and whose only capabilities are the
#   tools served by tools/mcp_server.py.
#
#   ┌──────────────────────────────┐        stdio        ┌──────────────────┐
#   │  ADK Agent (LiteLlm model)   │ ──── JSON-RPC ────▶ │ FastMCP server   │
#   │  + get_auditor_prompt()      │ ◀────────────────── │ (5 audit tools)  │
#   └──────────────────────────────┘                     └──────────────────┘
#                                                                 │
#                                                      Anthropic API, Azure
#
# MCP CONNECTION:
#   ADK starts the server as a subprocess and discovers its tools.  The
#   subprocess gets a copy of OUR environment — the MCP stdio client would
#   otherwise pass only a minimal whitelist (PATH, HOME, ...), and the
#   server needs ANTHROPIC_API_KEY, AZURE_BLOB_ENDPOINT and the Azure
#   credential variables.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_auditor_prompt

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# LiteLlm reads ANTHROPIC_API_KEY for "anthropic/..." models.  Any provider
# string LiteLLM understands works here (e.g. "openrouter/openai/gpt-4o").
DEFAULT_AGENT_MODEL = "anthropic/claude-3-5-haiku-20241022"


def server_parameters() -> StdioServerParameters:
    """How ADK launches the tool server: `python -m tools.mcp_server`."""
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        cwd=PROJECT_ROOT,
        env=dict(os.environ),
    )


def create_agent(model: str | None = None) -> Agent:
    """Create the compliance auditor agent.

    Args:
        model: LiteLLM model string.  Defaults to $AGENT_MODEL, then
            DEFAULT_AGENT_MODEL.

    Returns:
        A configured Google ADK Agent.  The MCP server is not started until
        the runner first needs the tool list.
    """
    mcp_tools = MCPToolset(connection_params=server_parameters())

    agent = Agent(
        name="compliance_auditor",
        model=LiteLlm(model=model or os.environ.get("AGENT_MODEL") or DEFAULT_AGENT_MODEL),
        instruction=get_auditor_prompt(),
        tools=[mcp_tools],
    )
    return agent
