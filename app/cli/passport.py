# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport lifecycle commands.

Commands:
    passport-registry passport issue <id> <holder> ... --sender <authority>
    passport-registry passport revoke <id> --sender <authority>
    passport-registry passport update-metadata <id> [--url URL] --sender <authority>
    passport-registry passport extend <id> <blocks> --sender <authority>
    passport-registry passport show <id>
    passport-registry passport valid <id>
    passport-registry passport holder <holder>
"""

from typing import Optional

import typer

from app.cli.output import EXIT_CALL_REJECTED, OutputFormat, output, output_error
from app.cli.utils import submit_call, with_client

app = typer.Typer(
    name="passport",
    help="Issue, revoke, update and query passports.",
    no_args_is_help=True,
)

SENDER = typer.Option(..., "--sender", "-s", help="Caller identity submitting the call")
FORMAT = typer.Option(OutputFormat.json, "--format", "-f", help="Output format")


@app.command("issue")
def issue_cmd(
    passport_id: str = typer.Argument(..., help="Unique passport identifier"),
    holder: str = typer.Argument(..., help="Holder identity"),
    full_name: str = typer.Option(..., "--name", help="Holder full name"),
    date_of_birth: int = typer.Option(..., "--dob", min=0, help="Date of birth, e.g. 19900101"),
    nationality: str = typer.Option(..., "--nationality", help="Nationality"),
    validity_period: int = typer.Option(..., "--validity", min=0, help="Validity period in blocks"),
    metadata_url: Optional[str] = typer.Option(None, "--metadata-url", help="Optional metadata URL"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Issue a passport (active authority only)."""
    submit_call(
        "issue-passport",
        [passport_id, holder, full_name, date_of_birth, nationality, validity_period, metadata_url],
        sender,
        format,
    )


@app.command("revoke")
def revoke_cmd(
    passport_id: str = typer.Argument(..., help="Passport to revoke"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Permanently revoke a passport (active authority only)."""
    submit_call("revoke-passport", [passport_id], sender, format)


@app.command("update-metadata")
def update_metadata_cmd(
    passport_id: str = typer.Argument(..., help="Passport to update"),
    metadata_url: Optional[str] = typer.Option(None, "--url", help="New metadata URL; omit to clear"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Replace a passport's metadata URL (active authority only)."""
    submit_call("update-passport-metadata", [passport_id, metadata_url], sender, format)


@app.command("extend")
def extend_cmd(
    passport_id: str = typer.Argument(..., help="Passport to extend"),
    additional_blocks: int = typer.Argument(..., min=0, help="Blocks to add to the stored expiry"),
    sender: str = SENDER,
    format: OutputFormat = FORMAT,
) -> None:
    """Extend a passport's expiry height (active authority only)."""
    submit_call("extend-passport-validity", [passport_id, additional_blocks], sender, format)


@app.command("show")
def show_cmd(
    passport_id: str = typer.Argument(..., help="Passport to show"),
    format: OutputFormat = FORMAT,
) -> None:
    """Show the raw passport record."""
    passport = with_client(lambda c: c.passport(passport_id))
    if passport is None:
        output_error(
            code="NOT_FOUND",
            message=f"Passport not found: {passport_id}",
            exit_code=EXIT_CALL_REJECTED,
        )
    output(passport, format)


@app.command("valid")
def valid_cmd(
    passport_id: str = typer.Argument(..., help="Passport to check"),
    format: OutputFormat = FORMAT,
) -> None:
    """Check whether a passport is currently valid (unrevoked and unexpired)."""
    output(with_client(lambda c: c.validity(passport_id)), format)


@app.command("holder")
def holder_cmd(
    holder: str = typer.Argument(..., help="Holder identity"),
    format: OutputFormat = FORMAT,
) -> None:
    """Look up the passport bound to a holder."""
    output(with_client(lambda c: c.holder_passport(holder)), format)
