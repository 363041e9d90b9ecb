"""Shared CLI input readers and output formatters."""

from __future__ import annotations

import json
import sys
from typing import IO, TYPE_CHECKING, Any, NoReturn

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from llm_rosetta.providers.provider import ProviderAdapter

console = Console()


def read_payload(stream: IO[str], label: str = "input") -> Any:
    """Parse a JSON document from *stream*, exiting with status 1 on bad JSON.

    A document holding a single JSON string yields that string, which the
    translator treats as a bare text payload.
    """
    try:
        return json.loads(stream.read())
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {label}:[/red] {escape(str(exc))}")
        sys.exit(1)


def print_error(title: str, exc: Exception) -> NoReturn:
    """Print *exc* in red and exit with status 1."""
    console.print(f"[red]{title}:[/red] {escape(str(exc))}", highlight=False)
    sys.exit(1)


def print_json_data(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_providers_table(adapters: list[ProviderAdapter]) -> None:
    """Pretty-print registered provider adapters as a table."""
    table = Table(title="Providers")
    table.add_column("Tag", style="cyan")
    table.add_column("Name")
    table.add_column("Target")
    table.add_column("System channel")

    for adapter in adapters:
        table.add_row(
            adapter.tag,
            adapter.name,
            _yes_no(adapter.is_target),
            _yes_no(adapter.supports_system),
        )

    console.print(table)


def providers_data(adapters: list[ProviderAdapter]) -> list[dict[str, Any]]:
    return [
        {
            "tag": adapter.tag,
            "name": adapter.name,
            "target": adapter.is_target,
            "system": adapter.supports_system,
        }
        for adapter in adapters
    ]


def _yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"
