# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Chain clock commands.

Commands:
    passport-registry chain show
    passport-registry chain advance [--blocks N | --to-height H]
"""

from typing import Optional

import typer

from app.cli.output import EXIT_USAGE_ERROR, OutputFormat, output, output_error
from app.cli.utils import with_client

app = typer.Typer(
    name="chain",
    help="Inspect and advance the registry clock.",
    no_args_is_help=True,
)

FORMAT = typer.Option(OutputFormat.json, "--format", "-f", help="Output format")


@app.command("show")
def show_cmd(format: OutputFormat = FORMAT) -> None:
    """Show the current height and owner."""
    output(with_client(lambda c: c.chain()), format)


@app.command("advance")
def advance_cmd(
    blocks: Optional[int] = typer.Option(None, "--blocks", "-n", min=0, help="Empty blocks to mine"),
    to_height: Optional[int] = typer.Option(None, "--to-height", min=0, help="Target height"),
    format: OutputFormat = FORMAT,
) -> None:
    """Mine empty blocks to move the clock forward."""
    if (blocks is None) == (to_height is None):
        output_error(
            code="USAGE",
            message="Specify exactly one of --blocks or --to-height",
            exit_code=EXIT_USAGE_ERROR,
        )
    output(with_client(lambda c: c.advance(blocks=blocks, to_height=to_height)), format)
