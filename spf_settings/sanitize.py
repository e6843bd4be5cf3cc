"""
Sanitization engine: turn an untrusted form submission into storable values.

The engine walks the settings document, not the submission, so only keys of
declared fields survive. A sanitize pass never raises; every branch has a
defined fallback value.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable, Mapping, Optional

from spf_settings.fields import FieldTypeRegistry, default_registry
from spf_settings.models import FieldSpec, SettingsDocument
from spf_settings.sanitizers import is_empty

logger = logging.getLogger(__name__)

NO_SANITIZATION = "no"

ExternalSanitizer = Callable[[Any], Any]


def _iter_rows(raw: Any) -> Optional[list[Any]]:
    """Return group rows in submission order, or None when `raw` holds no rows."""
    if isinstance(raw, Mapping):
        if not raw:
            return None
        keys = list(raw.keys())
        try:
            keys.sort(key=lambda key: int(key))
        except (TypeError, ValueError):
            pass
        return [raw[key] for key in keys]
    if isinstance(raw, (list, tuple)):
        return list(raw) if raw else None
    return None


class SanitizationEngine:
    """Type-dispatched sanitizer for one or more settings documents."""

    def __init__(
        self,
        registry: Optional[FieldTypeRegistry] = None,
        sanitizers: Optional[Mapping[str, ExternalSanitizer]] = None,
    ):
        self.registry = registry or default_registry()
        self._sanitizers: dict[str, ExternalSanitizer] = dict(sanitizers or {})

    def register_sanitizer(self, name: str, func: ExternalSanitizer) -> None:
        """Make `func` available to fields declaring ``sanitize: <name>``."""
        self._sanitizers[name] = func

    def resolve_sanitizer(self, name: str) -> Optional[ExternalSanitizer]:
        """Look up a named sanitizer; `module:attr` paths are imported lazily."""
        if name in self._sanitizers:
            return self._sanitizers[name]
        if ":" not in name:
            return None
        module_name, _, attr = name.partition(":")
        if not module_name.strip() or not attr.strip():
            return None
        try:
            module = importlib.import_module(module_name)
            func = getattr(module, attr, None)
        except ImportError as exc:
            logger.debug("Sanitizer module %s not importable: %s", module_name, exc)
            return None
        except Exception as exc:
            logger.warning("Failed to load sanitizer %s: %s", name, exc)
            return None
        if not callable(func):
            return None
        self._sanitizers[name] = func
        return func

    def sanitize(
        self,
        document: SettingsDocument,
        submission: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        """Return the cleaned `storage key -> value` mapping for a submission."""
        posted: Mapping[str, Any] = submission if isinstance(submission, Mapping) else {}
        cleaned: dict[str, Any] = {}

        for section in document.sections:
            for field in section.fields:
                if not field.id or not field.type:
                    continue
                key = document.storage_key(section, field)

                if self.registry.supports_subfields(field.type):
                    rows = self.sanitize_group(field, posted.get(key))
                    if rows is not None:
                        cleaned[key] = rows
                    continue

                cleaned[key] = self.sanitize_value(field, posted.get(key))

        dropped = set(posted) - set(cleaned)
        if dropped:
            logger.debug(
                "Dropped %d undeclared keys from %s submission",
                len(dropped),
                document.option_group,
            )
        return cleaned

    def sanitize_group(self, field: FieldSpec, raw: Any) -> Optional[list[dict[str, Any]]]:
        """Sanitize the rows of a group field; None means "nothing to store"."""
        if not field.subfields:
            return None
        rows = _iter_rows(raw)
        if rows is None:
            return None

        cleaned_rows: list[dict[str, Any]] = []
        for row in rows:
            if not isinstance(row, Mapping):
                cleaned_rows.append({})
                continue
            cleaned_row: dict[str, Any] = {}
            for subfield in field.subfields:
                if not subfield.id or not subfield.type:
                    continue
                if self.registry.supports_subfields(subfield.type):
                    # Groups cannot nest.
                    continue
                cleaned_row[subfield.id] = self.sanitize_value(subfield, row.get(subfield.id))
            cleaned_rows.append(cleaned_row)
        return cleaned_rows

    def sanitize_value(self, field: FieldSpec, raw: Any) -> Any:
        """Sanitize one scalar (or list) value according to its field."""
        value = "" if raw is None else raw
        if is_empty(value):
            return value

        override = field.sanitize_override
        if override:
            if override.strip().lower() == NO_SANITIZATION:
                return value
            func = self.resolve_sanitizer(override)
            if func is not None:
                try:
                    return func(value)
                except Exception as exc:
                    logger.warning(
                        "Sanitizer %s failed for field %s, using type rule: %s",
                        override,
                        field.id,
                        exc,
                    )
            else:
                logger.debug(
                    "Unknown sanitizer %s for field %s, using type rule",
                    override,
                    field.id,
                )

        rule = self.registry.sanitizer_for(field.type)
        try:
            return rule(field, value)
        except Exception as exc:
            # A rule that raises stores the field default.
            logger.warning("Sanitize rule for %s failed on field %s: %s", field.type, field.id, exc)
            return field.default if field.default is not None else ""


def sanitize(
    document: SettingsDocument,
    submission: Optional[Mapping[str, Any]],
    *,
    registry: Optional[FieldTypeRegistry] = None,
    sanitizers: Optional[Mapping[str, ExternalSanitizer]] = None,
) -> dict[str, Any]:
    """Convenience wrapper around `SanitizationEngine.sanitize`."""
    return SanitizationEngine(registry, sanitizers).sanitize(document, submission)
