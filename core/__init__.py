# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the gateways: the code that actually talks to the
# completion backend and to Azure, plus the models, errors, configuration
# and credential chain they share.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or Google ADK.  Every gateway
#   takes its client in the constructor, so tests hand in fakes and the
#   tools/ layer hands in the real ones built at startup.
# =============================================================================
