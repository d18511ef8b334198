# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the reusable logic behind the Notion MCP tools:
#
#   cache.py       TTL memoization with a background sweep
#   retry.py       bounded, linear-backoff retry for transient failures
#   filtering.py   the "should this item be hidden?" predicate
#   config.py      config.json loading
#   extractors.py  titles and URLs from Notion objects
#   formatting.py  Notion pages/databases rendered as plain text
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or the Notion SDK.  Every module
#   here can be imported and tested with no network and no MCP client.
# =============================================================================
