"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from llm_rosetta.cli_commands.infer import infer_cmd
    from llm_rosetta.cli_commands.providers import providers
    from llm_rosetta.cli_commands.translate import translate_cmd

    cli.add_command(translate_cmd)
    cli.add_command(infer_cmd)
    cli.add_command(providers)
