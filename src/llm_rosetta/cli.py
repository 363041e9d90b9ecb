"""llm-rosetta CLI entrypoint."""

from __future__ import annotations

import logging

import click

from llm_rosetta import __version__
from llm_rosetta.utils.telemetry import configure_telemetry


@click.group()
@click.version_option(version=__version__, prog_name="rosetta")
@click.option("--verbose", "-v", is_flag=True, help="Log translation decisions to stderr.")
@click.option("--trace", "trace_spans", is_flag=True, help="Print translation spans to stderr.")
@click.option("--otlp-endpoint", metavar="URL", default=None, help="Export translation spans via OTLP/gRPC.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, trace_spans: bool, otlp_endpoint: str | None) -> None:
    """rosetta: translate chat payloads between LLM provider formats."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if trace_spans or otlp_endpoint:
        try:
            provider = configure_telemetry(console=trace_spans, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            raise click.ClickException(str(exc)) from exc
        ctx.call_on_close(provider.shutdown)


# Register subcommands
from llm_rosetta.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
