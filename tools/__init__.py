# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and the Notion API.  It:
#     1. Registers each tool with a name, typed parameters and a docstring
#        (the client's LLM reads these to decide WHEN to call a tool)
#     2. Calls Notion through core.retry.with_retry
#     3. Caches and filters results with core/ helpers
#     4. Returns plain text
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT hold caching, retry or filtering policy (that's in core/)
#   - They do NOT write to Notion.  Every tool is read-only.
# =============================================================================
