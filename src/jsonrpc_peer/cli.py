"""jsonrpc-peer CLI.

Developer tooling around the peer.

Usage:
    jsonrpc-peer classify < messages.jsonl    # Print each message's kind
    jsonrpc-peer classify --json < messages   # Same, as JSON lines
    jsonrpc-peer serve                        # Stdio peer with ping/echo
    jsonrpc-peer config                       # Show configuration
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import TextIO

import click

from .codec import decode_message
from .config import PeerConfig
from .errors import JsonRpcProtocolError
from .messages import classify
from .methods import MethodTable
from .transport import StreamTransport

logger = logging.getLogger(__name__)

PARSE_ERROR_KIND = "parse-error"


def _configure_logging(level: str) -> None:
    """Send all logging to stderr; stdout carries JSON-RPC traffic."""
    logging.basicConfig(
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(level.upper())


def build_demo_methods() -> MethodTable:
    """Methods exposed by ``serve``."""
    methods = MethodTable()

    @methods.register()
    def ping() -> str:
        return "pong"

    @methods.register()
    def echo(*args: object) -> list[object]:
        return list(args)

    return methods


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (logs go to stderr)",
)
def main(log_level: str) -> None:
    """JSON-RPC 2.0 peer tools."""
    _configure_logging(log_level)


@main.command("classify")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON lines")
def classify_messages(source: TextIO, output_json: bool) -> None:
    """Classify JSON-RPC messages, one JSON document per line.

    Examples:

        jsonrpc-peer classify messages.jsonl
        cat messages.jsonl | jsonrpc-peer classify --json
    """
    for line_no, line in enumerate(source, start=1):
        data = line.strip()
        if not data:
            continue

        try:
            kind = classify(decode_message(data)).value
        except JsonRpcProtocolError:
            kind = PARSE_ERROR_KIND

        if output_json:
            click.echo(json.dumps({"line": line_no, "kind": kind}))
        else:
            click.echo(f"{line_no}: {kind}")


@main.command("serve")
def serve() -> None:
    """Run a stdio peer exposing ``ping`` and ``echo``.

    Reads newline-delimited JSON-RPC from stdin until EOF and writes
    responses to stdout.
    """

    async def run() -> None:
        transport = StreamTransport()
        peer = transport.create_peer(build_demo_methods(), config=PeerConfig.from_env())
        await transport.start()
        logger.info("Serving JSON-RPC on stdio")
        try:
            await transport.wait_closed()
            await peer.drain()
        finally:
            await transport.stop()

    asyncio.run(run())


@main.command("config")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def show_config(output_json: bool) -> None:
    """Show configuration resolved from JSONRPC_PEER_* variables."""
    config = PeerConfig.from_env()

    if output_json:
        click.echo(json.dumps(asdict(config), indent=2))
        return

    click.echo("jsonrpc-peer configuration")
    click.echo("-" * 40)
    click.echo(f"Id strategy:         {config.id_strategy}")
    click.echo(f"Id prefix:           {config.id_prefix or 'none'}")
    click.echo(f"Include error data:  {config.include_error_data}")


if __name__ == "__main__":
    main()
