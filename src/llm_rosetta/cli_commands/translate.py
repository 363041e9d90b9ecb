"""``rosetta translate``: translate a JSON payload between provider formats."""

from __future__ import annotations

from typing import IO

import click

from llm_rosetta.api.translator import Translator
from llm_rosetta.cli_commands._output import print_error, print_json_data, read_payload
from llm_rosetta.core.metadata import MetadataMode
from llm_rosetta.errors import TranslationError
from llm_rosetta.providers.provider import Direction


@click.command("translate")
@click.argument("payload", type=click.File("r"))
@click.option("--from", "source", default=None, help="Source provider tag (inferred when omitted).")
@click.option("--to", "target", default=None, help="Target provider tag (canonical form when omitted).")
@click.option(
    "--system-file",
    type=click.File("r"),
    default=None,
    help="JSON file holding separately supplied system instructions.",
)
@click.option(
    "--direction",
    type=click.Choice([d.value for d in Direction]),
    default=Direction.INPUT.value,
    show_default=True,
    help="Role for a bare string payload: input (user) or output (assistant).",
)
@click.option(
    "--metadata-mode",
    type=click.Choice([m.value for m in MetadataMode]),
    default=MetadataMode.STRIP.value,
    show_default=True,
    help="How provider-specific extension fields are written to the output.",
)
def translate_cmd(
    payload: IO[str],
    source: str | None,
    target: str | None,
    system_file: IO[str] | None,
    direction: str,
    metadata_mode: str,
) -> None:
    """Translate the messages in PAYLOAD (a JSON file, or - for stdin).

    See ``rosetta providers`` for the available tags.
    """
    messages = read_payload(payload)
    system = read_payload(system_file, "system file") if system_file is not None else None

    try:
        result = Translator().translate(
            messages,
            source=source,
            target=target,
            system=system,
            direction=direction,
            metadata_mode=metadata_mode,
        )
    except TranslationError as exc:
        print_error("Translation error", exc)

    print_json_data(result.to_data())
