# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Snapshot persistence of committed registry state.

The registry core performs no I/O. The host registers
:meth:`RegistryRepository.commit_hook` on the block sequencer so that every
committed block is written through, and calls :meth:`load` at startup to
rebuild the in-memory state.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select

from app.db.models import AuthorityRecord, ChainMeta, PassportRecord
from app.db.session import get_db_session
from app.registry.models import Authority, Block, Passport
from app.registry.state import RegistryState

log = logging.getLogger("passport_registry.db")


class OwnerMismatchError(Exception):
    """Configured owner differs from the owner stored in the database."""
    pass


class RegistryRepository:
    """Reads and writes :class:`RegistryState` snapshots."""

    def save(self, state: RegistryState) -> None:
        with get_db_session() as db:
            meta = db.get(ChainMeta, 1)
            if meta is None:
                meta = ChainMeta(id=1, owner=state.owner, height=state.height)
                db.add(meta)
            meta.height = state.height
            meta.updated_at = datetime.now(timezone.utc)

            # Authorities are replaced wholesale; removal deletes the row.
            db.execute(delete(AuthorityRecord))
            for authority in state.authorities.values():
                db.add(AuthorityRecord(
                    identity=authority.identity,
                    name=authority.name,
                    added_at_height=authority.added_at_height,
                ))

            for passport in state.passports.values():
                db.merge(PassportRecord(**passport.to_dict()))

        log.debug(
            "State snapshot saved: height=%d authorities=%d passports=%d",
            state.height, len(state.authorities), len(state.passports),
        )

    def load(self, owner: str) -> Optional[RegistryState]:
        """Rebuild state from the database, or ``None`` if nothing is stored.

        Raises:
            OwnerMismatchError: If a stored registry has a different owner.
        """
        with get_db_session() as db:
            meta = db.get(ChainMeta, 1)
            if meta is None:
                return None
            if meta.owner != owner:
                raise OwnerMismatchError(
                    f"Configured owner {owner!r} does not match stored owner {meta.owner!r}"
                )

            state = RegistryState(meta.owner, meta.height)
            for row in db.scalars(select(AuthorityRecord)):
                state.authorities[row.identity] = Authority(
                    identity=row.identity,
                    name=row.name,
                    added_at_height=row.added_at_height,
                )
            for row in db.scalars(select(PassportRecord)):
                state.passports[row.passport_id] = Passport(
                    passport_id=row.passport_id,
                    holder=row.holder,
                    full_name=row.full_name,
                    date_of_birth=row.date_of_birth,
                    nationality=row.nationality,
                    issued_at_height=row.issued_at_height,
                    expiry_height=row.expiry_height,
                    is_valid=row.is_valid,
                    issuing_authority=row.issuing_authority,
                    metadata_url=row.metadata_url,
                )
                state.holder_index[row.holder] = row.passport_id

        log.info(
            "State restored: height=%d authorities=%d passports=%d",
            state.height, len(state.authorities), len(state.passports),
        )
        return state

    def commit_hook(self, state: RegistryState, block: Block) -> None:
        self.save(state)


_repository: Optional[RegistryRepository] = None


def get_registry_repository() -> RegistryRepository:
    global _repository
    if _repository is None:
        _repository = RegistryRepository()
    return _repository


def reset_registry_repository() -> None:
    global _repository
    _repository = None
