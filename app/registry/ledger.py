# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport ledger: issuance and in-place lifecycle mutations.

Every mutation is gated on the caller being an active authority. Any active
authority may act on any passport; the original issuer has no special
standing and loses all rights once removed from the authority set.

Uniqueness rules:

* A ``passport_id`` is never reused. Records are never deleted, so a revoked
  passport still occupies its id.
* A holder is bound to at most one passport for its entire lifetime. The
  holder index entry survives revocation.

All preconditions are checked before the first write, so a failed call never
leaves a partial mutation behind.
"""

import logging
from typing import Optional

from app.registry.authority import require_authority
from app.registry.errors import MalformedCallError, RegistryError
from app.registry.models import Passport
from app.registry.state import MAX_UINT, RegistryState

logger = logging.getLogger("passport_registry.ledger")


def _require_passport(state: RegistryState, passport_id: str) -> Passport:
    passport = state.get_passport(passport_id)
    if passport is None:
        raise RegistryError.not_found("passport", passport_id)
    return passport


def _check_expiry(expiry_height: int) -> int:
    if expiry_height > MAX_UINT:
        raise MalformedCallError(f"expiry height out of range: {expiry_height}")
    return expiry_height


def issue_passport(
    state: RegistryState,
    caller: str,
    passport_id: str,
    holder: str,
    full_name: str,
    date_of_birth: int,
    nationality: str,
    validity_period: int,
    metadata_url: Optional[str] = None,
) -> bool:
    """Issue a new passport at the current height.

    Checks, in order: caller is an active authority, ``passport_id`` is
    unused, ``holder`` has never been bound. On success the record and the
    holder index entry are written together.
    """
    require_authority(state, caller)
    if passport_id in state.passports:
        raise RegistryError.already_exists("passport", passport_id)
    if holder in state.holder_index:
        raise RegistryError.already_exists("holder binding", holder)

    height = state.height
    expiry_height = _check_expiry(height + validity_period)
    state.passports[passport_id] = Passport(
        passport_id=passport_id,
        holder=holder,
        full_name=full_name,
        date_of_birth=date_of_birth,
        nationality=nationality,
        issued_at_height=height,
        expiry_height=expiry_height,
        is_valid=True,
        issuing_authority=caller,
        metadata_url=metadata_url,
    )
    state.holder_index[holder] = passport_id

    logger.info(
        "Passport issued: id=%s holder=%s authority=%s height=%d expiry=%d",
        passport_id, holder, caller, height, expiry_height,
    )
    return True


def revoke_passport(state: RegistryState, caller: str, passport_id: str) -> bool:
    """Clear the validity flag. Revocation is permanent."""
    require_authority(state, caller)
    passport = _require_passport(state, passport_id)

    passport.is_valid = False
    logger.info("Passport revoked: id=%s authority=%s", passport_id, caller)
    return True


def update_passport_metadata(
    state: RegistryState,
    caller: str,
    passport_id: str,
    metadata_url: Optional[str] = None,
) -> bool:
    """Replace ``metadata_url``; ``None`` clears it."""
    require_authority(state, caller)
    passport = _require_passport(state, passport_id)

    passport.metadata_url = metadata_url
    logger.info("Passport metadata updated: id=%s url=%s", passport_id, metadata_url)
    return True


def extend_passport_validity(
    state: RegistryState,
    caller: str,
    passport_id: str,
    additional_blocks: int,
) -> bool:
    """Push the stored expiry out by ``additional_blocks``.

    The extension is added to the existing ``expiry_height``, not to the
    current height. The revocation flag is left alone.
    """
    require_authority(state, caller)
    passport = _require_passport(state, passport_id)

    passport.expiry_height = _check_expiry(passport.expiry_height + additional_blocks)
    logger.info(
        "Passport validity extended: id=%s by=%d new_expiry=%d",
        passport_id, additional_blocks, passport.expiry_height,
    )
    return True


def get_passport(state: RegistryState, passport_id: str) -> Optional[Passport]:
    return state.get_passport(passport_id)


def get_holder_passport(state: RegistryState, holder: str) -> Optional[str]:
    return state.holder_index.get(holder)
