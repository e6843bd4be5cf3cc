"""Tests for environment helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from spf_common.config.env import (
    DEFAULT_STORE_FILENAME,
    parse_bool_env,
    resolve_store_path,
)


pytestmark = pytest.mark.unit_common


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_parse_bool_env_truthy(raw: str) -> None:
    assert parse_bool_env(raw) is True


def test_parse_bool_env_falsy_and_missing() -> None:
    assert parse_bool_env("off") is False
    assert parse_bool_env(None) is None


def test_resolve_store_path_precedence(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SPF_STORE_PATH", raising=False)
    assert resolve_store_path() == tmp_path / DEFAULT_STORE_FILENAME

    monkeypatch.setenv("SPF_STORE_PATH", str(tmp_path / "env.json"))
    assert resolve_store_path() == tmp_path / "env.json"

    assert resolve_store_path(tmp_path / "flag.json") == tmp_path / "flag.json"
