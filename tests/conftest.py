from collections import defaultdict

import pytest
from rich.console import Console
from rich.table import Table

from spf_settings.hooks import HookBus
from spf_settings.storage import InMemoryOptionStore

# Defined markers in pyproject.toml
KNOWN_MARKERS = {"unit_common", "unit_settings"}


@pytest.fixture
def store() -> InMemoryOptionStore:
    return InMemoryOptionStore()


@pytest.fixture
def bus() -> HookBus:
    return HookBus()


@pytest.fixture
def tabless_config() -> dict:
    return {
        "option_group": "myplugin",
        "sections": [
            {
                "section_id": "general",
                "section_title": "General",
                "section_description": "<em>Basics</em>",
                "section_order": 2,
                "fields": [
                    {"id": "name", "title": "Name", "type": "text", "default": "anon"},
                    {
                        "id": "mode",
                        "title": "Mode",
                        "type": "select",
                        "choices": {"a": "Alpha", "b": "Beta"},
                        "default": "a",
                    },
                    {"id": "enabled", "title": "Enabled", "type": "checkbox"},
                ],
            },
            {
                "section_id": "advanced",
                "section_title": "Advanced",
                "section_order": 1,
                "fields": [
                    {"id": "limit", "title": "Limit", "type": "number", "default": 5},
                    {
                        "id": "links",
                        "title": "Links",
                        "type": "group",
                        "subfields": [
                            {"id": "label", "title": "Label", "type": "text"},
                            {"id": "color", "title": "Color", "type": "color"},
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def tabbed_config() -> dict:
    return {
        "option_group": "myplugin",
        "tabs": [
            {"id": "main", "title": "Main"},
            {"id": "extra", "title": "Extra"},
        ],
        "sections": [
            {
                "tab_id": "main",
                "section_id": "general",
                "section_title": "General",
                "fields": [{"id": "name", "title": "Name", "type": "text"}],
            },
            {
                "tab_id": "extra",
                "section_id": "colors",
                "section_title": "Colors",
                "fields": [{"id": "accent", "title": "Accent", "type": "color"}],
            },
        ],
    }


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """
    Custom hook to print statistics by marker at the end of the test session.
    """
    _ = (exitstatus, config)
    marker_stats = defaultdict(
        lambda: {"passed": 0, "failed": 0, "skipped": 0, "total": 0, "duration": 0.0}
    )

    for outcome in ["passed", "failed", "skipped"]:
        for report in terminalreporter.stats.get(outcome, []):
            # Only count the actual test call, or setup skips
            if report.when == "call" or (report.when == "setup" and report.outcome == "skipped"):
                duration = getattr(report, "duration", 0.0)
                for marker in KNOWN_MARKERS:
                    if marker in report.keywords:
                        stats = marker_stats[marker]
                        stats[outcome] += 1
                        stats["total"] += 1
                        stats["duration"] += duration

    if not marker_stats:
        return

    table = Table(title="Test Statistics by Marker", show_header=True, header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="blue")

    for marker in sorted(marker_stats):
        stats = marker_stats[marker]
        if stats["total"] > 0:
            table.add_row(
                marker,
                str(stats["total"]),
                str(stats["passed"]),
                str(stats["failed"]),
                str(stats["skipped"]),
                f"{stats['duration']:.2f}",
            )

    console = Console()
    console.print("\n")
    console.print(table)
