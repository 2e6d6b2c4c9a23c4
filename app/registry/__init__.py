# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport registry core: authorities, passport ledger and validity."""

from app.registry.chain import RegistryNode, get_registry_node, reset_registry_node
from app.registry.contract import call, read_only
from app.registry.errors import ErrorCode, MalformedCallError, RegistryError
from app.registry.models import Authority, Block, CallResult, Passport, Receipt, Tx
from app.registry.state import RegistryState

__all__ = [
    "Authority",
    "Block",
    "CallResult",
    "ErrorCode",
    "MalformedCallError",
    "Passport",
    "Receipt",
    "RegistryError",
    "RegistryNode",
    "RegistryState",
    "Tx",
    "call",
    "get_registry_node",
    "read_only",
    "reset_registry_node",
]
