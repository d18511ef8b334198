# =============================================================================
# core/formatting.py  —  Turning Notion Records into Plain Text
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The MCP client reads text, not Notion JSON.  This module renders:
#     - a page's blocks        →  markdown-ish plain text
#     - a database's rows      →  a numbered list of "Property: value" lines
#
# CONTEXT BUDGET:
#   Unsupported block types are skipped, and empty property values are
#   omitted from the output.  The client only sees what it can reason about.
# =============================================================================

from typing import Any

from core.extractors import notion_url, plain_text


# -----------------------------------------------------------------------------
# Blocks
# -----------------------------------------------------------------------------
# Block types whose only content is rich text, with the prefix to render.
_PREFIXED_BLOCKS = {
    "paragraph": "",
    "heading_1": "# ",
    "heading_2": "## ",
    "heading_3": "### ",
    "bulleted_list_item": "• ",
    "numbered_list_item": "- ",
    "quote": "> ",
    "toggle": "▶ ",
}


def block_to_plain_text(block: dict[str, Any]) -> str | None:
    """Render one block, or return None for types we do not display."""
    block_type = block.get("type")
    body = block.get(block_type) or {}

    if block_type in _PREFIXED_BLOCKS:
        return _PREFIXED_BLOCKS[block_type] + plain_text(body.get("rich_text"))

    if block_type == "to_do":
        mark = "✓" if body.get("checked") else "☐"
        return f"{mark} {plain_text(body.get('rich_text'))}"

    if block_type == "code":
        code = plain_text(body.get("rich_text"))
        return f"```{body.get('language') or ''}\n{code}\n```"

    if block_type == "child_page":
        return f"📄 [Child Page] {body.get('title', '')} — {notion_url(block['id'])}"

    if block_type == "child_database":
        return f"🗄️ [Child Database] {body.get('title', '')} — {notion_url(block['id'])}"

    if block_type == "divider":
        return "---"

    return None


def format_page(title: str, page_id: str, blocks: list[dict[str, Any]]) -> str:
    """Full text of a page: header lines followed by its rendered blocks."""
    rendered = [text for text in map(block_to_plain_text, blocks) if text]
    content = "\n\n".join(rendered)
    return f"Title: {title}\nURL: {notion_url(page_id)}\n\n{content or '(empty page)'}"


# -----------------------------------------------------------------------------
# Database properties
# -----------------------------------------------------------------------------
def format_property(prop: dict[str, Any] | None) -> str:
    """Render a single property value of a database row as a string."""
    if not prop:
        return ""

    prop_type = prop.get("type")
    value = prop.get(prop_type)

    if prop_type in ("title", "rich_text"):
        return plain_text(value)
    if prop_type == "number":
        return "" if value is None else str(value)
    if prop_type in ("select", "status"):
        return (value or {}).get("name", "")
    if prop_type == "multi_select":
        return ", ".join(option.get("name", "") for option in value or [])
    if prop_type == "date":
        return (value or {}).get("start") or ""
    if prop_type == "checkbox":
        return "✓" if value else "✗"
    if prop_type in ("url", "email", "phone_number"):
        return value or ""
    return f"[{prop_type}]"


def format_empty_database(title: str) -> str:
    return f"Database: {title}\n\nThis database is empty (no entries found)."


def format_database(
    title: str,
    database_id: str,
    property_names: list[str],
    rows: list[dict[str, Any]],
) -> str:
    """Render a queried database as a header plus one block per row."""
    lines = [
        f"Database: {title}",
        f"URL: {notion_url(database_id)}",
        f"Entries: {len(rows)}",
        "",
        f"Properties: {', '.join(property_names)}",
        "",
        "--- Entries ---",
        "",
    ]

    for index, row in enumerate(rows, start=1):
        lines.append(f"Entry {index}:")
        properties = row.get("properties") or {}
        for name in property_names:
            value = format_property(properties.get(name))
            if value:
                lines.append(f"  {name}: {value}")
        lines.append(f"  URL: {notion_url(row['id'])}")
        lines.append("")

    return "\n".join(lines)
