# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport registry CLI - main entry point with subcommand registration."""

import typer

from app.cli import authority, chain, passport

app = typer.Typer(
    name="passport-registry",
    help="Passport registry client - submit calls and query a running registry service.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo("passport-registry version 1.0.0")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Passport registry client.

    Mutating commands take the caller identity via --sender. Output is JSON
    by default. A call rejected by the registry exits with status 1 and an
    error object on stderr carrying the integer error code.

    Examples:
        passport-registry authority add gov-office "Passport Office" -s registry-owner
        passport-registry passport issue PP1 alice --name "Alice" --dob 19900101 \\
            --nationality NZ --validity 100 -s gov-office
        passport-registry passport valid PP1
    """
    pass


app.add_typer(authority.app, name="authority", help="Manage issuing authorities")
app.add_typer(passport.app, name="passport", help="Issue and manage passports")
app.add_typer(chain.app, name="chain", help="Inspect and advance the registry clock")


if __name__ == "__main__":
    app()
