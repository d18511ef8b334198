# =============================================================================
# core/extractors.py  —  Small Helpers for Notion Record Shapes
# =============================================================================
#
# Notion returns deeply nested JSON.  These helpers pull out the two things
# every tool needs: a human-readable title and a browser URL.
# =============================================================================

from typing import Any

NOTION_BASE_URL = "https://www.notion.so"


def plain_text(rich_text: list[dict] | None) -> str:
    """Concatenate the plain_text of a Notion rich-text array."""
    return "".join(part.get("plain_text", "") for part in rich_text or [])


def extract_title(item: dict[str, Any], default: str = "Untitled") -> str:
    """Return the display title of a page or database object.

    Databases carry their title as a top-level rich-text array.  Pages carry
    it inside the one property whose type is "title".
    """
    title = item.get("title")
    if isinstance(title, list) and title:
        return plain_text(title) or default

    for prop in (item.get("properties") or {}).values():
        if not isinstance(prop, dict) or prop.get("type") != "title":
            continue
        value = prop.get("title")
        if isinstance(value, list) and value and value[0].get("plain_text"):
            return value[0]["plain_text"]

    return default


def notion_url(item_id: str) -> str:
    """Browser URL for a page, database or block ID (hyphens optional)."""
    return f"{NOTION_BASE_URL}/{item_id.replace('-', '')}"
