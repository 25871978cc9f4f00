# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the reference orchestrating client: a Google ADK
# agent that launches the tool server over stdio and drives an audit.
#
# ARCHITECTURAL ROLE:
#   agent/ → decides WHICH tool to call and WHEN (LLM reasoning)
#   tools/ → MCP wrappers and the process host
#   core/  → the gateways that actually talk to Anthropic and Azure
#
# Nothing in tools/ or core/ imports from here; the server runs fine with
# any other MCP client.
# =============================================================================
