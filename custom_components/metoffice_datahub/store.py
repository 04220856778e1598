"""Per-entity key/value state.

The poll path only ever talks to ``EntityStore`` (get/set). ``StateStore`` is
the in-process implementation the integration uses; the coordinator hands a
snapshot of it to its entities once per published cycle.
"""

from __future__ import annotations

from typing import Any, Protocol

from .const import NS_LATEST


def latest_key(name: str) -> str:
    """Key under which a field of the latest reading is mirrored."""
    return f"{NS_LATEST}:{name}"


class EntityStore(Protocol):
    def get(self, entity_id: str, key: str, default: Any = None) -> Any: ...

    def set(self, entity_id: str, key: str, value: Any) -> None: ...


class StateStore:
    """Dict-backed EntityStore."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, entity_id: str, key: str, default: Any = None) -> Any:
        return self._data.get(entity_id, {}).get(key, default)

    def set(self, entity_id: str, key: str, value: Any) -> None:
        self._data.setdefault(entity_id, {})[key] = value

    def snapshot(self, entity_id: str) -> dict[str, Any]:
        return dict(self._data.get(entity_id, {}))

    def snapshot_all(self) -> dict[str, dict[str, Any]]:
        return {eid: dict(values) for eid, values in self._data.items()}

    def namespace(self, entity_id: str, namespace: str) -> dict[str, Any]:
        """Values under ``<namespace>:`` with the prefix stripped."""
        prefix = f"{namespace}:"
        return {
            k[len(prefix):]: v
            for k, v in self._data.get(entity_id, {}).items()
            if k.startswith(prefix)
        }

    def entity_ids(self) -> list[str]:
        return list(self._data)
