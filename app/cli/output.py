# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Output formatting utilities for the passport registry CLI.

Supports three output formats:
- json: Machine-readable JSON (default, for piping)
- pretty: Indented JSON for human reading
- table: Rich tables for list data
"""

import json
import sys
from enum import Enum
from typing import Any, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table

# Exit codes
EXIT_CALL_REJECTED = 1
EXIT_USAGE_ERROR = 2
EXIT_IO_ERROR = 3


class OutputFormat(str, Enum):
    """Output format options."""

    json = "json"
    pretty = "pretty"
    table = "table"


def output_json(data: Any, pretty: bool = False) -> None:
    indent = 2 if pretty else None
    try:
        typer.echo(json.dumps(data, indent=indent, default=str))
    except TypeError as e:
        typer.echo(f"Error serializing output: {e}", err=True)
        raise typer.Exit(EXIT_USAGE_ERROR) from e


def output_table(
    data: Sequence[dict[str, Any]],
    columns: Optional[list[str]] = None,
    title: Optional[str] = None,
) -> None:
    """Output data as a rich table.

    Args:
        data: List of dictionaries to display
        columns: Column names to display (defaults to all keys from first row)
        title: Optional table title
    """
    if not data:
        typer.echo("No data to display.", err=True)
        return

    if columns is None:
        columns = list(data[0].keys())

    console = Console()
    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)
    for row in data:
        table.add_row(*[str(row.get(col, "")) for col in columns])

    console.print(table)


def output(
    data: Any,
    format: OutputFormat = OutputFormat.json,
    table_title: Optional[str] = None,
) -> None:
    """Output data in the specified format."""
    if format == OutputFormat.json:
        output_json(data, pretty=False)
    elif format == OutputFormat.pretty:
        output_json(data, pretty=True)
    elif format == OutputFormat.table:
        if isinstance(data, list):
            output_table(data, title=table_title)
        elif isinstance(data, dict):
            items = [{"key": k, "value": str(v)} for k, v in data.items()]
            output_table(items, columns=["key", "value"], title=table_title)
        else:
            output_json(data, pretty=True)


def output_error(
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    exit_code: int = EXIT_CALL_REJECTED,
) -> None:
    """Output an error as JSON to stderr and exit."""
    error_data: dict[str, Any] = {
        "error": True,
        "code": code,
        "message": message,
    }
    if details:
        error_data["details"] = details

    print(json.dumps(error_data), file=sys.stderr)
    raise typer.Exit(exit_code)
