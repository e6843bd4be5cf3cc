"""Configuration helpers shared across packages."""

from spf_common.config.env import parse_bool_env, resolve_store_path

__all__ = ["parse_bool_env", "resolve_store_path"]
