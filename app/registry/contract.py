# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Named call surface for the passport registry.

Mutating methods are invoked as ``call(state, method, args, caller)`` and
always return a :class:`CallResult`; a :class:`RegistryError` raised by the
operation becomes a failed result carrying its integer code. Read-only
methods are invoked as ``read_only(state, method, args)`` and return the
value directly, with ``None`` as the absent marker.

Arguments are positional, in the documented order. They are checked against
each method's signature before dispatch. A call that cannot be decoded
(unknown method, wrong arity, wrong type, negative unsigned value) raises
:class:`MalformedCallError` and never reaches the ledger.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from app.registry import authority, ledger, validity
from app.registry.errors import MalformedCallError, RegistryError
from app.registry.models import CallResult
from app.registry.state import MAX_UINT, RegistryState

logger = logging.getLogger("passport_registry.contract")

__all__ = [
    "MUTATING_METHODS",
    "READ_ONLY_METHODS",
    "call",
    "decode_args",
    "read_only",
]


# ======================================================================
# Argument kinds
# ======================================================================

TEXT = "text"
UINT = "uint"
OPTIONAL_TEXT = "optional-text"


@dataclass(frozen=True)
class Param:
    name: str
    kind: str


@dataclass(frozen=True)
class MethodSignature:
    func: Callable[..., Any]
    params: Tuple[Param, ...]
    # Query depends on the clock and accepts a ``height`` override
    at_height: bool = False


def _check_arg(method: str, param: Param, value: Any) -> Any:
    if param.kind == TEXT:
        if not isinstance(value, str) or not value:
            raise MalformedCallError(f"{method}: '{param.name}' must be a non-empty string")
        return value
    if param.kind == OPTIONAL_TEXT:
        if value is not None and not isinstance(value, str):
            raise MalformedCallError(f"{method}: '{param.name}' must be a string or null")
        return value
    if param.kind == UINT:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedCallError(f"{method}: '{param.name}' must be an integer")
        if not 0 <= value <= MAX_UINT:
            raise MalformedCallError(f"{method}: '{param.name}' out of range [0, {MAX_UINT}], got {value}")
        return value
    raise MalformedCallError(f"{method}: unknown parameter kind {param.kind!r}")


def decode_args(method: str, signature: MethodSignature, args: Sequence[Any]) -> tuple:
    """Validate positional ``args`` against ``signature``.

    A trailing optional-text parameter may be omitted and defaults to
    ``None``.
    """
    params = signature.params
    args = list(args)
    if len(args) == len(params) - 1 and params and params[-1].kind == OPTIONAL_TEXT:
        args.append(None)
    if len(args) != len(params):
        raise MalformedCallError(
            f"{method}: expected {len(params)} arguments, got {len(args)}"
        )
    return tuple(_check_arg(method, p, v) for p, v in zip(params, args))


# ======================================================================
# Method tables
# ======================================================================

MUTATING_METHODS: Dict[str, MethodSignature] = {
    "add-authority": MethodSignature(
        authority.add_authority,
        (Param("identity", TEXT), Param("name", TEXT)),
    ),
    "remove-authority": MethodSignature(
        authority.remove_authority,
        (Param("identity", TEXT),),
    ),
    "issue-passport": MethodSignature(
        ledger.issue_passport,
        (
            Param("passport_id", TEXT),
            Param("holder", TEXT),
            Param("full_name", TEXT),
            Param("date_of_birth", UINT),
            Param("nationality", TEXT),
            Param("validity_period", UINT),
            Param("metadata_url", OPTIONAL_TEXT),
        ),
    ),
    "revoke-passport": MethodSignature(
        ledger.revoke_passport,
        (Param("passport_id", TEXT),),
    ),
    "update-passport-metadata": MethodSignature(
        ledger.update_passport_metadata,
        (Param("passport_id", TEXT), Param("metadata_url", OPTIONAL_TEXT)),
    ),
    "extend-passport-validity": MethodSignature(
        ledger.extend_passport_validity,
        (Param("passport_id", TEXT), Param("additional_blocks", UINT)),
    ),
}

READ_ONLY_METHODS: Dict[str, MethodSignature] = {
    "get-owner": MethodSignature(authority.get_owner, ()),
    "is-authority": MethodSignature(authority.is_authority, (Param("identity", TEXT),)),
    "get-authority": MethodSignature(authority.get_authority, (Param("identity", TEXT),)),
    "get-passport": MethodSignature(ledger.get_passport, (Param("passport_id", TEXT),)),
    "get-holder-passport": MethodSignature(ledger.get_holder_passport, (Param("holder", TEXT),)),
    "is-valid-passport?": MethodSignature(
        validity.is_valid_passport, (Param("passport_id", TEXT),), at_height=True,
    ),
}


# ======================================================================
# Entry points
# ======================================================================

def call(state: RegistryState, method: str, args: Sequence[Any], caller: str) -> CallResult:
    """Apply one mutating call as ``caller`` and return its result."""
    signature = MUTATING_METHODS.get(method)
    if signature is None:
        raise MalformedCallError(f"unknown method: {method}")
    if not isinstance(caller, str) or not caller:
        raise MalformedCallError(f"{method}: caller must be a non-empty string")
    decoded = decode_args(method, signature, args)

    try:
        value = signature.func(state, caller, *decoded)
    except RegistryError as e:
        logger.warning(
            "Call rejected: method=%s caller=%s code=%d (%s)",
            method, caller, e.code, e.message,
        )
        return CallResult.failure(e.code, e.message)

    logger.info("Call accepted: method=%s caller=%s height=%d", method, caller, state.height)
    return CallResult.success(value)


def read_only(
    state: RegistryState,
    method: str,
    args: Sequence[Any] = (),
    height: Optional[int] = None,
) -> Any:
    """Evaluate a read-only query against the current state.

    ``height`` overrides the clock for height-dependent queries; by default
    they are evaluated at ``state.height``.
    """
    signature = READ_ONLY_METHODS.get(method)
    if signature is None:
        raise MalformedCallError(f"unknown read-only method: {method}")
    decoded = decode_args(method, signature, args)
    if signature.at_height:
        return signature.func(state, *decoded, height=height)
    return signature.func(state, *decoded)
