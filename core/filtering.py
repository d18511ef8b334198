# =============================================================================
# core/filtering.py  —  Result Suppression Rules
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Decides whether a page or database should be hidden from search and
#   listing results.  Rules are checked in order and the first match wins:
#
#     1. Title contains an exclude keyword (case-insensitive)   → hide
#     2. ID is on the exclude list for its kind                 → hide
#     3. Include-only list for its kind is non-empty and the
#        ID is not on it                                        → hide
#     4. Otherwise                                              → show
#
#   Pure function: same inputs and same rules, same answer.
# =============================================================================

from core.models import FilterRules, ItemKind


def should_filter(title: str, item_id: str, kind: ItemKind, rules: FilterRules) -> bool:
    """Return True if the item must be suppressed.

    Args:
        title: Display title of the item.
        item_id: Notion ID of the item, as returned by the API.
        kind: "page" or "database".
        rules: Current filter configuration.  Read, never modified.
    """
    title_lower = title.lower()
    if any(keyword.lower() in title_lower for keyword in rules.exclude_keywords):
        return True

    if item_id in rules.exclude_ids_for(kind):
        return True

    include_only = rules.include_only_ids_for(kind)
    if include_only and item_id not in include_only:
        return True

    return False
