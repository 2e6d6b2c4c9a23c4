# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport registry API request/response models."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.registry.models import Authority, Block, Passport, Receipt


# =============================================================================
# Requests
# =============================================================================

class TxRequest(BaseModel):
    """A mutating call. ``args`` are positional, in the method's documented order."""

    method: str
    args: List[Any] = Field(default_factory=list)
    sender: str


class CallRequest(BaseModel):
    args: List[Any] = Field(default_factory=list)
    sender: str


class BlockRequest(BaseModel):
    txs: List[TxRequest] = Field(default_factory=list)


class AdvanceRequest(BaseModel):
    blocks: Optional[int] = Field(default=None, ge=0)
    to_height: Optional[int] = Field(default=None, ge=0)


# =============================================================================
# Responses
# =============================================================================

class CallResultModel(BaseModel):
    ok: bool
    value: Any = None
    error: Optional[int] = None
    message: Optional[str] = None


class ReceiptModel(BaseModel):
    method: str
    sender: str
    result: CallResultModel

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> "ReceiptModel":
        return cls(
            method=receipt.tx.method,
            sender=receipt.tx.sender,
            result=CallResultModel(**receipt.result.to_dict()),
        )


class BlockResponse(BaseModel):
    height: int
    receipts: List[ReceiptModel] = Field(default_factory=list)

    @classmethod
    def from_block(cls, block: Block) -> "BlockResponse":
        return cls(
            height=block.height,
            receipts=[ReceiptModel.from_receipt(r) for r in block.receipts],
        )


class ChainResponse(BaseModel):
    """``height`` is where the next block executes; queries run at ``tip_height``."""

    height: int
    tip_height: int
    owner: str


class AuthorityResponse(BaseModel):
    identity: str
    is_authority: bool
    name: Optional[str] = None
    added_at_height: Optional[int] = None

    @classmethod
    def build(cls, identity: str, authority: Optional[Authority]) -> "AuthorityResponse":
        if authority is None:
            return cls(identity=identity, is_authority=False)
        return cls(is_authority=True, **authority.to_dict())


class PassportResponse(BaseModel):
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

    @classmethod
    def from_passport(cls, passport: Passport) -> "PassportResponse":
        return cls(**passport.to_dict())


class ValidityResponse(BaseModel):
    passport_id: str
    valid: bool
    height: int


class HolderPassportResponse(BaseModel):
    holder: str
    passport_id: Optional[str] = None
