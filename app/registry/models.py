# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Record and result types for the passport registry."""

from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional

from app.registry.errors import ErrorCode


@dataclass
class Authority:
    """An active issuing authority. Exists only while the identity is active."""

    identity: str
    name: str
    added_at_height: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Passport:
    """A passport credential record.

    ``is_valid`` is the explicit revocation flag only. Time-based expiry is
    never written back here; see :mod:`app.registry.validity`.
    """

    passport_id: str
    holder: str
    full_name: str
    date_of_birth: int
    nationality: str
    issued_at_height: int
    expiry_height: int
    is_valid: bool
    issuing_authority: str
    metadata_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CallResult:
    """Discriminated result of a mutating call: ok with a value, or an error code."""

    ok: bool
    value: Any = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: Any = True) -> "CallResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str = "") -> "CallResult":
        return cls(ok=False, error=code, message=message)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "value": self.value,
            "error": int(self.error) if self.error is not None else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class Tx:
    """A mutating call submitted for inclusion in a block."""

    method: str
    args: tuple
    sender: str


@dataclass(frozen=True)
class Receipt:
    tx: Tx
    result: CallResult


@dataclass
class Block:
    height: int
    receipts: List[Receipt] = field(default_factory=list)
