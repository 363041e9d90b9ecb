"""``rosetta infer``: report which provider format a payload matches."""

from __future__ import annotations

from typing import IO

import click

from llm_rosetta.cli_commands._output import console, read_payload
from llm_rosetta.core.infer import infer_provider
from llm_rosetta.providers.provider import provider_tag


@click.command("infer")
@click.argument("payload", type=click.File("r"))
@click.option(
    "--system-file",
    type=click.File("r"),
    default=None,
    help="JSON file holding separately supplied system instructions.",
)
def infer_cmd(payload: IO[str], system_file: IO[str] | None) -> None:
    """Print the provider tag inferred for the messages in PAYLOAD."""
    messages = read_payload(payload)
    system = read_payload(system_file, "system file") if system_file is not None else None
    console.print(provider_tag(infer_provider(messages, system)), highlight=False)
