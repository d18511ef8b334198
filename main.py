# =============================================================================
# main.py  —  Entry Point for the Notion MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
#   Or point an MCP client (Claude Desktop, an ADK agent, ...) at it:
#     {"command": "uv", "args": ["run", "python", "main.py"],
#      "env": {"NOTION_TOKEN": "secret_..."}}
#
# WHAT HAPPENS:
#   1. Loads .env so NOTION_TOKEN can live outside the shell profile
#   2. Exits with status 1 if NOTION_TOKEN is missing
#   3. Loads config.json (filters + cache settings) — defaults if absent
#   4. Builds the Notion client and the FastMCP server (tools/mcp_server.py)
#   5. Serves MCP over stdio until the client disconnects
# =============================================================================

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file (NOTION_TOKEN, NOTION_MCP_CONFIG).
# This must happen BEFORE reading the config path or the token.
load_dotenv()

from notion_client import AsyncClient

from core.config import load_config
from tools.mcp_server import create_server

logger = logging.getLogger("notion-mcp")


async def run_server(token: str) -> None:
    """Run the MCP server on stdio until the client goes away.

    The Notion client is closed and the cache sweep is cancelled on the way
    out, so the process exits without pending tasks.
    """
    config = load_config()

    async with AsyncClient(auth=token) as notion:
        mcp = create_server(config, notion)
        logger.info("Notion MCP Server running on stdio")
        await mcp.run_async(transport="stdio")


def main() -> None:
    token = os.environ.get("NOTION_TOKEN")
    if not token:
        print("NOTION_TOKEN is not set (add it to your environment or .env)", file=sys.stderr)
        sys.exit(1)

    asyncio.run(run_server(token))


if __name__ == "__main__":
    main()
