"""Entry-point discovery helpers for settings contributors."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Iterator


logger = logging.getLogger(__name__)


def discover_entrypoints(group: str) -> list[importlib.metadata.EntryPoint]:
    """Return the entry points of `group` without importing them.

    Duplicate names keep the first distribution that declares them.
    """
    try:
        eps = importlib.metadata.entry_points().select(group=group)
    except Exception as exc:
        logger.debug("Failed to read entry points for group %s: %s", group, exc)
        return []
    seen: set[str] = set()
    found: list[importlib.metadata.EntryPoint] = []
    for entry_point in eps:
        if entry_point.name in seen:
            continue
        seen.add(entry_point.name)
        found.append(entry_point)
    return found


def iter_loaded_entrypoints(
    entry_points: list[importlib.metadata.EntryPoint],
    *,
    label: str = "entry point",
) -> Iterator[tuple[str, Any]]:
    """Import each entry point, yielding `(name, object)` for the ones that load."""
    for entry_point in entry_points:
        try:
            loaded = entry_point.load()
        except ImportError as exc:
            logger.debug(
                "Skipping %s %s due to missing dependency: %s",
                label,
                entry_point.name,
                exc,
            )
            continue
        except Exception as exc:
            logger.warning("Failed to load %s %s: %s", label, entry_point.name, exc)
            continue
        yield entry_point.name, loaded
