"""
Option store adapters.

The host's key-value store is modelled by the `OptionStore` protocol. Each
option group lives under a single option name (``{group}_settings``) holding
the whole `storage key -> value` mapping; it is read and written as one blob.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from spf_common.errors import StorageError, wrap_error
from spf_settings.keys import option_name

logger = logging.getLogger(__name__)


@runtime_checkable
class OptionStore(Protocol):
    """Minimal interface of the host's option storage."""

    def read(self, name: str) -> Optional[Mapping[str, Any]]:
        ...

    def write(self, name: str, value: Mapping[str, Any]) -> None:
        ...

    def delete(self, name: str) -> None:
        ...


class InMemoryOptionStore:
    """Process-local store, mostly useful for tests and previews."""

    def __init__(self, initial: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._options: dict[str, dict[str, Any]] = {
            name: dict(value) for name, value in (initial or {}).items()
        }

    def read(self, name: str) -> Optional[Mapping[str, Any]]:
        value = self._options.get(name)
        return copy.deepcopy(value) if value is not None else None

    def write(self, name: str, value: Mapping[str, Any]) -> None:
        self._options[name] = copy.deepcopy(dict(value))

    def delete(self, name: str) -> None:
        self._options.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._options)


class JsonFileOptionStore:
    """All options of a site kept in one JSON document on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise wrap_error(
                StorageError,
                f"Cannot read option store {self.path}",
                context={"path": self.path},
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise StorageError(
                f"Option store {self.path} does not hold a JSON object",
                context={"path": self.path},
            )
        return data

    def _persist(self, data: Mapping[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise wrap_error(
                StorageError,
                f"Cannot write option store {self.path}",
                context={"path": self.path},
                cause=exc,
            ) from exc

    def read(self, name: str) -> Optional[Mapping[str, Any]]:
        value = self._load().get(name)
        return value if isinstance(value, dict) else None

    def write(self, name: str, value: Mapping[str, Any]) -> None:
        data = self._load()
        data[name] = dict(value)
        self._persist(data)
        logger.info("Saved option %s to %s", name, self.path)

    def delete(self, name: str) -> None:
        data = self._load()
        if data.pop(name, None) is not None:
            self._persist(data)
            logger.info("Deleted option %s from %s", name, self.path)

    def names(self) -> list[str]:
        return sorted(self._load())


def get_setting(
    store: OptionStore,
    option_group: str,
    section_id: str,
    field_id: str,
    default: Any = None,
) -> Any:
    """
    Read one stored value without building the settings document.

    In tabbed documents pass ``"{tab_id}_{section_id}"`` as `section_id`.
    """
    options = store.read(option_name(option_group)) or {}
    return options.get(f"{section_id}_{field_id}", default)


def delete_settings(store: OptionStore, option_group: str) -> None:
    """Remove every stored value of an option group."""
    store.delete(option_name(option_group))
