# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared helpers for passport registry CLI commands."""

from typing import Any, Callable, Sequence, TypeVar

import httpx

from app.cli.client import RegistryClient, RegistryClientError
from app.cli.output import (
    EXIT_CALL_REJECTED,
    EXIT_IO_ERROR,
    EXIT_USAGE_ERROR,
    OutputFormat,
    output,
    output_error,
)
from app.registry.errors import ErrorCode

T = TypeVar("T")


def get_client() -> RegistryClient:
    """Build the client used by every command. Patched in tests."""
    return RegistryClient()


def with_client(fn: Callable[[RegistryClient], T]) -> T:
    """Run ``fn`` with a client, mapping transport failures to exit codes."""
    client = get_client()
    try:
        return fn(client)
    except RegistryClientError as e:
        output_error(
            code=f"HTTP_{e.status_code}",
            message=e.detail,
            exit_code=EXIT_USAGE_ERROR if e.status_code in (400, 409, 422) else EXIT_IO_ERROR,
        )
    except httpx.HTTPError as e:
        output_error(code="CONNECTION_FAILED", message=str(e), exit_code=EXIT_IO_ERROR)
    finally:
        client.close()


def submit_call(method: str, args: Sequence[Any], sender: str, format: OutputFormat) -> None:
    """Submit one call, print its receipt, and exit non-zero if it was rejected."""
    block = with_client(lambda c: c.call(method, args, sender))
    receipt = block["receipts"][0]
    result = receipt["result"]
    if not result["ok"]:
        code = result["error"]
        try:
            name = ErrorCode(code).name
        except ValueError:
            name = f"ERROR_{code}"
        output_error(
            code=name,
            message=result.get("message") or method,
            details={"height": block["height"], "error": code},
            exit_code=EXIT_CALL_REJECTED,
        )
    output({"height": block["height"], **receipt}, format)
