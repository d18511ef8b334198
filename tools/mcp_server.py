# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines every MCP tool the client can call.  Each tool is a thin wrapper
#   around the Notion API and core/ helpers:
#
#   1. The MCP client calls a tool by name (e.g., "fetch_page")
#   2. The tool checks the TTL cache (core/cache.py)
#   3. On a miss it calls Notion through with_retry (core/retry.py)
#   4. core/formatting.py turns the JSON into text
#   5. Listings drop anything should_filter() rejects (core/filtering.py)
#
# TOOL NAMING CONVENTIONS:
#   - search_* / list_*  → read-only listings, filtered by config
#   - fetch_* / query_*  → read-only retrieval, cached by ID
#   - get_cache_stats    → cache introspection (and the one "clear" action)
#
# WIRING:
#   create_server() receives the config, a Notion client and (optionally) a
#   cache.  Nothing is read from globals, so tests can build a server around
#   a fake Notion client.
# =============================================================================

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Literal

from fastmcp import FastMCP

from core.cache import TTLCache
from core.extractors import extract_title, notion_url
from core.filtering import should_filter
from core.formatting import format_database, format_empty_database, format_page
from core.models import NotionItem, ServerConfig
from core.retry import with_retry

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to its client over STDOUT.
# A log line on stdout would corrupt the JSON-RPC stream.
#
#   CYAN   incoming requests (tool name + parameters)
#   YELLOW intermediate status (cache hits/misses, counts)
#   GREEN  responses
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log a one-line digest of the tool response in GREEN, then return it."""
    first_line = text.splitlines()[0] if text else ""
    logger.info(f"{_GREEN}  ← {tool_name} response ({len(text)} chars): {first_line}{_RESET}")
    return text


SERVER_NAME = "notion-mcp"

_NO_DATABASES_HINT = (
    "No databases found in your Notion workspace. "
    "Make sure your integration has access to the target pages."
)

_ALL_DATABASES_FILTERED = "No databases matched the current filter settings."


def create_server(
    config: ServerConfig,
    notion: Any,
    cache: TTLCache | None = None,
    *,
    max_attempts: int = 3,
    base_delay_ms: float = 1000,
) -> FastMCP:
    """Build the FastMCP server with all Notion tools registered.

    Args:
        config: Filtering and caching configuration.  Read live by the tools.
        notion: A ``notion_client.AsyncClient`` (or anything with the same
                ``search`` / ``pages`` / ``blocks`` / ``databases`` surface).
        cache: Shared TTL cache.  Built from ``config.caching`` when omitted.
        max_attempts: Retry budget for every Notion call.
        base_delay_ms: Linear backoff unit for every Notion call.

    Returns:
        A FastMCP server whose lifespan runs the cache's background sweep.
    """
    if cache is None:
        cache = TTLCache(config.caching.ttl_minutes, config.caching)

    async def call(operation):
        return await with_retry(operation, max_attempts, base_delay_ms)

    async def collect_all(fetch, **params) -> list[dict]:
        """Follow Notion's cursor pagination and return every result."""
        results: list[dict] = []
        cursor = None
        while True:
            kwargs = dict(params, start_cursor=cursor) if cursor else params
            response = await call(lambda: fetch(**kwargs))
            results.extend(response.get("results", []))
            cursor = response.get("next_cursor") if response.get("has_more", True) else None
            if not cursor:
                return results

    @asynccontextmanager
    async def lifespan(server):
        async with cache:
            yield

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)

    # =========================================================================
    # TOOL 1: search_notion
    # =========================================================================
    @mcp.tool()
    async def search_notion(query: str) -> str:
        """Search the Notion workspace by keyword and return page titles + URLs.

        Args:
            query: The search query to find pages in Notion.

        Returns:
            One line per matching page: "<title> — <url>".  Pages hidden by
            the server's filter configuration are never returned.
        """
        _log_request("search_notion", query=query)

        response = await call(lambda: notion.search(query=query))
        items = [
            NotionItem(title=extract_title(r), id=r["id"], url=notion_url(r["id"]))
            for r in response.get("results", [])
            if r.get("object") == "page"
        ]
        visible = [i for i in items if not should_filter(i.title, i.id, "page", config.filtering)]
        _log_status(f"{len(items)} pages found, {len(items) - len(visible)} filtered out")

        if not visible:
            return _log_response("search_notion", f'No results found for "{query}".')
        return _log_response(
            "search_notion",
            "\n".join(f"{i.title} — {i.url}" for i in visible),
        )

    # =========================================================================
    # TOOL 2: fetch_page
    # =========================================================================
    # Cached under "page:<id>".  The whole rendered text is cached, so a hit
    # costs zero Notion calls.
    # =========================================================================
    @mcp.tool()
    async def fetch_page(page_id: str) -> str:
        """Fetch a Notion page's title and plain text content by ID.

        Args:
            page_id: The Notion page ID (with or without hyphens).

        Returns:
            "Title: ...", "URL: ..." and then the page body rendered as
            plain text (headings, lists, to-dos, code, child links).
        """
        _log_request("fetch_page", page_id=page_id)

        cache_key = f"page:{page_id}"
        cached = cache.get(cache_key)
        if cached is not None:
            _log_status(f"[CACHE HIT] Page {page_id} served from cache")
            return _log_response("fetch_page", cached)
        _log_status(f"[CACHE MISS] Fetching page {page_id} from Notion API")

        page = await call(lambda: notion.pages.retrieve(page_id=page_id))
        blocks = await collect_all(notion.blocks.children.list, block_id=page_id)
        _log_status(f"Retrieved {len(blocks)} blocks")

        content = format_page(extract_title(page), page_id, blocks)
        cache.set(cache_key, content)
        return _log_response("fetch_page", content)

    # =========================================================================
    # TOOL 3: query_database
    # =========================================================================
    @mcp.tool()
    async def query_database(database_id: str) -> str:
        """Query a Notion database to retrieve its entries/rows with their properties.

        Args:
            database_id: The Notion database ID (with or without hyphens).

        Returns:
            The database title, URL, entry count and property names,
            followed by every entry's non-empty property values.
        """
        _log_request("query_database", database_id=database_id)

        cache_key = f"database:{database_id}"
        cached = cache.get(cache_key)
        if cached is not None:
            _log_status(f"[CACHE HIT] Database {database_id} served from cache")
            return _log_response("query_database", cached)
        _log_status(f"[CACHE MISS] Querying database {database_id} from Notion API")

        database = await call(lambda: notion.databases.retrieve(database_id=database_id))
        title = extract_title(database, default="Untitled Database")
        property_names = list((database.get("properties") or {}).keys())

        rows = await collect_all(notion.databases.query, database_id=database_id)
        if not rows:
            return _log_response("query_database", format_empty_database(title))

        output = format_database(title, database_id, property_names, rows)
        cache.set(cache_key, output)
        return _log_response("query_database", output)

    # =========================================================================
    # TOOL 4: list_databases
    # =========================================================================
    # Search does not always return database objects directly, so we also
    # look at the parent of every page and fetch that database's metadata
    # once.  A database we cannot read is logged and skipped.
    # =========================================================================
    @mcp.tool()
    async def list_databases() -> str:
        """List all databases in the connected Notion workspace.

        Returns:
            One line per database: "<title> — <url> (ID: <id>)".
        """
        _log_request("list_databases")

        response = await call(lambda: notion.search())
        seen: set[str] = set()
        databases: list[dict] = []
        debug_info: list[str] = []

        for item in response.get("results", []):
            debug_info.append(f"Object type: {item.get('object')}, ID: {item.get('id')}")

            if item.get("object") == "database":
                if item["id"] not in seen:
                    seen.add(item["id"])
                    databases.append(item)
                continue

            parent = item.get("parent") or {}
            database_id = parent.get("database_id")
            if item.get("object") != "page" or not database_id or database_id in seen:
                continue

            seen.add(database_id)
            try:
                databases.append(
                    await call(lambda: notion.databases.retrieve(database_id=database_id))
                )
            except Exception as exc:
                logger.warning(f"Failed to fetch database {database_id}: {exc}")

        if not databases:
            _log_status("No databases visible to the integration")
            return _log_response(
                "list_databases",
                _NO_DATABASES_HINT + "\n\nDebug info:\n" + "\n".join(debug_info[:10]),
            )

        items = [
            NotionItem(
                title=extract_title(db, default="Untitled Database"),
                id=db["id"],
                url=notion_url(db["id"]),
            )
            for db in databases
        ]
        visible = [i for i in items if not should_filter(i.title, i.id, "database", config.filtering)]
        _log_status(f"{len(items)} databases found, {len(items) - len(visible)} filtered out")
        if not visible:
            return _log_response("list_databases", _ALL_DATABASES_FILTERED)

        return _log_response(
            "list_databases",
            "\n".join(f"{i.title} — {i.url} (ID: {i.id})" for i in visible),
        )

    # =========================================================================
    # TOOL 5: get_cache_stats
    # =========================================================================
    @mcp.tool()
    async def get_cache_stats(action: Literal["show", "clear"] = "show") -> str:
        """Get cache statistics including size and TTL, or clear the cache.

        Args:
            action: "show" (default) to report statistics, or "clear" to
                    empty the cache.
        """
        _log_request("get_cache_stats", action=action)

        if action == "clear":
            cache.clear()
            _log_status("Cache cleared manually")
            return _log_response("get_cache_stats", "Cache cleared successfully.")

        stats = cache.get_stats()
        status = "Enabled" if config.caching.enabled else "Disabled"
        ttl = f"{stats.ttl_minutes:g}"
        message = "\n".join([
            f"Cache Status: {status}",
            f"Cached Items: {stats.size}",
            f"TTL: {ttl} minutes",
            "",
            "To test cache:",
            "1. Fetch a page (it will cache it).",
            "2. Run get_cache_stats (size should increase).",
            "3. Fetch the same page again (should be instant - from cache).",
            f"4. Wait {ttl} minutes and fetch again (cache expires).",
        ])
        return _log_response("get_cache_stats", message)

    return mcp
