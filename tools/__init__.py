# =============================================================================
# tools/__init__.py
# =============================================================================
# This package is the MCP side of the server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP clients and core/:
#     registry.py   → the explicit table of tools (name, description,
#                     parameter schema, handler)
#     toolkit.py    → the five handlers, bound to live gateways
#     mcp_server.py → the process host: config, clients, FastMCP, stdio
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT build prompts or parse Azure responses (that's core/)
#   - They do NOT retry; a failed call is reported once
#
# TOOL CONTRACT QUALITY:
#   The description and parameter descriptions are what the client's LLM
#   reads to decide WHEN and HOW to call a tool.  Keep them specific.
# =============================================================================
