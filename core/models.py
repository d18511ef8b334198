# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of configuration and
# state that flows through the server.  They carry almost no behavior.
#
# OWNERSHIP:
#   - FilterRules / CachingConfig / ServerConfig are owned by configuration
#     loading (core/config.py).  Everything else only READS them.
#   - CacheEntry is owned exclusively by the TTL cache (core/cache.py).
#   - NotionItem is a formatted result produced by the tools/ layer.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Literal


# "page" and "database" are the only kinds of Notion item we list or filter.
ItemKind = Literal["page", "database"]


# -----------------------------------------------------------------------------
# FilterRules — which items must never be shown to the client
# -----------------------------------------------------------------------------
# Five independent lists.  Order inside a list is irrelevant; they are
# treated as sets by the filter predicate.
# -----------------------------------------------------------------------------
@dataclass
class FilterRules:
    """Declarative inclusion/exclusion rules for search and listing results."""

    exclude_keywords: list[str] = field(
        default_factory=lambda: ["deprecated", "depricated"]
    )
    exclude_page_ids: list[str] = field(default_factory=list)
    exclude_database_ids: list[str] = field(default_factory=list)

    # An EMPTY include-only list means "no restriction", not "hide everything".
    include_only_page_ids: list[str] = field(default_factory=list)
    include_only_database_ids: list[str] = field(default_factory=list)

    def exclude_ids_for(self, kind: ItemKind) -> list[str]:
        return self.exclude_page_ids if kind == "page" else self.exclude_database_ids

    def include_only_ids_for(self, kind: ItemKind) -> list[str]:
        if kind == "page":
            return self.include_only_page_ids
        return self.include_only_database_ids


@dataclass
class CachingConfig:
    """Cache toggle and lifetime.

    ``enabled`` is read live on every cache ``get``/``set`` so flipping it at
    runtime takes effect immediately.
    """

    enabled: bool = True
    ttl_minutes: float = 5


@dataclass
class ServerConfig:
    """Everything loaded from ``config.json``."""

    filtering: FilterRules = field(default_factory=FilterRules)
    caching: CachingConfig = field(default_factory=CachingConfig)


# -----------------------------------------------------------------------------
# CacheEntry — one memoized value
# -----------------------------------------------------------------------------
# Frozen: an entry is read-only after creation.  "Updating" a key means
# replacing the whole entry, which also resets its age to zero.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CacheEntry:
    value: Any
    created_at_ms: float


@dataclass
class CacheStats:
    """Occupancy report.  ``size`` includes expired-but-unswept entries."""

    size: int
    ttl_minutes: float


@dataclass
class NotionItem:
    """A search or listing result, ready to be rendered as one line."""

    title: str
    id: str
    url: str
