"""Test doubles for the Notion client and the clock."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotionError(Exception):
    """Mimics notion_client.APIResponseError's duck-typed surface."""

    def __init__(self, code=None, status=None, headers=None):
        super().__init__(f"notion error {code or status}")
        self.code = code
        self.status = status
        self.headers = headers or {}


def rich(text: str) -> list[dict]:
    return [{"plain_text": text}]


def page_obj(page_id: str, title: str, parent: dict | None = None) -> dict:
    return {
        "object": "page",
        "id": page_id,
        "parent": parent or {"type": "workspace", "workspace": True},
        "properties": {"Name": {"type": "title", "title": rich(title)}},
    }


def database_obj(database_id: str, title: str, properties: dict | None = None) -> dict:
    return {
        "object": "database",
        "id": database_id,
        "title": rich(title),
        "properties": properties or {"Name": {"type": "title", "title": {}}},
    }


class FakeNotion:
    """In-memory stand-in for notion_client.AsyncClient.

    Every endpoint is an AsyncMock, so tests can assert call counts or swap
    in a side_effect that raises.
    """

    def __init__(
        self,
        search_results: list[dict] | None = None,
        pages: dict[str, dict] | None = None,
        blocks: dict[str, list[list[dict]]] | None = None,
        databases: dict[str, dict] | None = None,
        rows: dict[str, list[dict]] | None = None,
        row_page_size: int = 100,
    ):
        self._pages = pages or {}
        self._blocks = blocks or {}
        self._databases = databases or {}
        self._rows = rows or {}
        self._row_page_size = row_page_size

        self.search = AsyncMock(return_value={"results": search_results or []})
        self.pages = SimpleNamespace(retrieve=AsyncMock(side_effect=self._retrieve_page))
        self.blocks = SimpleNamespace(
            children=SimpleNamespace(list=AsyncMock(side_effect=self._list_blocks))
        )
        self.databases = SimpleNamespace(
            retrieve=AsyncMock(side_effect=self._retrieve_database),
            query=AsyncMock(side_effect=self._query_database),
        )

    def _retrieve_page(self, page_id):
        return self._pages[page_id]

    def _retrieve_database(self, database_id):
        if database_id not in self._databases:
            raise FakeNotionError(code="object_not_found", status=404)
        return self._databases[database_id]

    def _list_blocks(self, block_id, start_cursor=None):
        # Blocks are stored as a list of result pages; the cursor is the
        # index of the next page.
        batches = self._blocks.get(block_id, [[]])
        index = int(start_cursor or 0)
        has_more = index + 1 < len(batches)
        return {
            "results": batches[index],
            "has_more": has_more,
            "next_cursor": str(index + 1) if has_more else None,
        }

    def _query_database(self, database_id, start_cursor=None):
        # Rows are served in pages of row_page_size; the cursor is an offset.
        rows = self._rows.get(database_id, [])
        start = int(start_cursor or 0)
        end = start + self._row_page_size
        has_more = end < len(rows)
        return {
            "results": rows[start:end],
            "has_more": has_more,
            "next_cursor": str(end) if has_more else None,
        }

