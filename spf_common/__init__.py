"""Shared helpers for settings-page-framework."""

from spf_common.api import configure_logging, option_group_context

__all__ = ["configure_logging", "option_group_context"]
