# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Authority management commands.

Commands:
    passport-registry authority add <identity> <name> --sender <owner>
    passport-registry authority remove <identity> --sender <owner>
    passport-registry authority show <identity>
"""

import typer

from app.cli.output import OutputFormat, output
from app.cli.utils import submit_call, with_client

app = typer.Typer(
    name="authority",
    help="Add, remove and inspect issuing authorities.",
    no_args_is_help=True,
)

SENDER = typer.Option(..., "--sender", "-s", help="Caller identity submitting the call")
FORMAT = typer.Option(OutputFormat.json, "--format", "-f", help="Output format")


@app.command("add")
def add_cmd(
    identity: str = typer.Argument(..., help="Identity to grant authority to"),
    name: str = typer.Argument(..., help="Human-readable authority name"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Grant authority status (owner only)."""
    submit_call("add-authority", [identity, name], sender, format)


@app.command("remove")
def remove_cmd(
    identity: str = typer.Argument(..., help="Authority identity to remove"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Revoke authority status (owner only)."""
    submit_call("remove-authority", [identity], sender, format)


@app.command("show")
def show_cmd(
    identity: str = typer.Argument(..., help="Identity to look up"),
    format: OutputFormat = FORMAT,
) -> None:
    """Show whether an identity is an active authority."""
    output(with_client(lambda c: c.authority(identity)), format)
