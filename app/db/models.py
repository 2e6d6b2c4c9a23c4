# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""SQLAlchemy models for passport registry persistence.

These tables hold a snapshot of the committed registry state after each
block: the owner and clock, the active authority set, and every passport
ever issued. The holder index is not stored separately; it is rebuilt from
the ``passports.holder`` column, which is unique.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class ChainMeta(Base):
    """Registry owner and current height (single row table)."""
    __tablename__ = "chain_meta"

    id = Column(Integer, primary_key=True)  # Always 1
    owner = Column(Text, nullable=False)
    height = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class AuthorityRecord(Base):
    """An active authority. Rows are deleted when the authority is removed."""
    __tablename__ = "authorities"

    identity = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    added_at_height = Column(BigInteger, nullable=False)


class PassportRecord(Base):
    """A passport. Rows are never deleted."""
    __tablename__ = "passports"

    passport_id = Column(Text, primary_key=True)
    holder = Column(Text, nullable=False, unique=True)
    full_name = Column(Text, nullable=False)
    date_of_birth = Column(BigInteger, nullable=False)
    nationality = Column(Text, nullable=False)
    issued_at_height = Column(BigInteger, nullable=False)
    expiry_height = Column(BigInteger, nullable=False)
    is_valid = Column(Boolean, nullable=False, default=True)
    issuing_authority = Column(Text, nullable=False)
    metadata_url = Column(Text, nullable=True)
