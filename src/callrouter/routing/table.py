"""
Routing table loading and lookup.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping

import anyio
from pydantic import TypeAdapter, ValidationError

from callrouter.routing.assets import AssetStore
from callrouter.routing.models import OfficeRecord
from callrouter.shared.logging import get_logger

logger = get_logger(__name__)

_TABLE_ADAPTER = TypeAdapter(dict[str, OfficeRecord])


class RoutingTableError(Exception):
    """Routing table asset is missing or malformed."""

    def __init__(self, message: str, asset_path: str | None = None) -> None:
        super().__init__(message)
        self.asset_path = asset_path


class RoutingTable(Mapping[str, OfficeRecord]):
    """Read-only mapping from inbound E.164 number to ``OfficeRecord``.

    Keys are matched by exact string equality; no normalization is applied.
    """

    def __init__(self, entries: Mapping[str, OfficeRecord]) -> None:
        self._entries = dict(entries)

    @classmethod
    def from_json(cls, text: str) -> RoutingTable:
        """Parse a serialized table.

        Raises:
            RoutingTableError: If the document is not a valid table.
        """
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise RoutingTableError(f"Routing table is not valid JSON: {e}") from e

        if not isinstance(raw, dict):
            raise RoutingTableError(
                f"Routing table must be an object, got {type(raw).__name__}"
            )

        try:
            entries = _TABLE_ADAPTER.validate_python(raw)
        except ValidationError as e:
            raise RoutingTableError(
                f"Routing table has invalid entries: {e.error_count()} error(s)"
            ) from e

        return cls(entries)

    def lookup(self, called_number: str) -> OfficeRecord | None:
        return self._entries.get(called_number)

    def __getitem__(self, key: str) -> OfficeRecord:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def read_routing_table(store: AssetStore, path: str) -> RoutingTable:
    """Read and parse the routing table (blocking)."""
    try:
        text = store.read_text(path)
    except OSError as e:
        raise RoutingTableError(f"Routing table asset unavailable: {e}", asset_path=path) from e

    try:
        table = RoutingTable.from_json(text)
    except RoutingTableError as e:
        e.asset_path = path
        raise

    logger.debug(
        "Routing table loaded",
        extra={"asset_path": path, "entries": len(table)},
    )
    return table


async def load_routing_table(store: AssetStore, path: str) -> RoutingTable:
    """Load the routing table off the event loop."""
    return await anyio.to_thread.run_sync(read_routing_table, store, path)
