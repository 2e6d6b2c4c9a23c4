# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport registry exceptions mapped to integer error codes.

Ledger errors form a closed enumeration. Code 2 is reserved and is never
emitted by any operation.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    UNAUTHORIZED = 1
    # 2 is reserved
    ALREADY_EXISTS = 3
    NOT_FOUND = 4


class RegistryError(Exception):
    """A call precondition failed; no state was changed."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    @classmethod
    def unauthorized(cls, caller: str, role: str) -> "RegistryError":
        return cls(code=ErrorCode.UNAUTHORIZED, message=f"{caller} is not {role}")

    @classmethod
    def already_exists(cls, kind: str, key: str) -> "RegistryError":
        return cls(code=ErrorCode.ALREADY_EXISTS, message=f"{kind} already exists: {key}")

    @classmethod
    def not_found(cls, kind: str, key: str) -> "RegistryError":
        return cls(code=ErrorCode.NOT_FOUND, message=f"{kind} not found: {key}")


class MalformedCallError(ValueError):
    """Call could not be decoded: unknown method, bad arity or bad argument type.

    This is a transport-level rejection, distinct from the ledger error codes.
    """
    pass
