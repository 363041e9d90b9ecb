"""``rosetta providers``: list the registered provider formats."""

from __future__ import annotations

import click

from llm_rosetta.cli_commands._output import print_json_data, print_providers_table, providers_data
from llm_rosetta.providers.registry import DEFAULT_REGISTRY


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def providers(as_json: bool) -> None:
    """List registered providers and whether each can be a target."""
    adapters = DEFAULT_REGISTRY.sources()
    if as_json:
        print_json_data(providers_data(adapters))
    else:
        print_providers_table(adapters)
