# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared test fixtures for the passport registry test suite.

Provides a fixed cast of identities, a fresh :class:`RegistryState`, a
block-sequencing :class:`RegistryNode`, and factories for issuing passports
with sensible defaults.
"""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from app.registry import authority, ledger
from app.registry.chain import RegistryNode, reset_registry_node
from app.registry.models import Tx
from app.registry.state import RegistryState


OWNER = "deployer"
AUTHORITY = "wallet_1"
CITIZEN = "wallet_2"
OTHER_AUTHORITY = "wallet_3"
OUTSIDER = "wallet_4"


# =========================================================================
# State
# =========================================================================

@pytest.fixture
def state() -> RegistryState:
    """Fresh registry state at height 0 owned by ``OWNER``."""
    return RegistryState(OWNER)


@pytest.fixture
def authorized_state(state: RegistryState) -> RegistryState:
    """State with ``AUTHORITY`` already registered."""
    authority.add_authority(state, OWNER, AUTHORITY, "Passport Office")
    return state


@pytest.fixture
def issue(authorized_state: RegistryState) -> Callable[..., bool]:
    """Factory fixture: issue a passport on ``authorized_state``.

    Keyword arguments override the defaults; the caller defaults to
    ``AUTHORITY``.
    """

    def _issue(
        passport_id: str = "PP123456789",
        holder: str = CITIZEN,
        full_name: str = "John Doe",
        date_of_birth: int = 19900101,
        nationality: str = "United States",
        validity_period: int = 3650,
        metadata_url: Optional[str] = None,
        caller: str = AUTHORITY,
    ) -> bool:
        return ledger.issue_passport(
            authorized_state,
            caller,
            passport_id,
            holder,
            full_name,
            date_of_birth,
            nationality,
            validity_period,
            metadata_url,
        )

    return _issue


# =========================================================================
# Node
# =========================================================================

@pytest.fixture
def node() -> RegistryNode:
    """Fresh block sequencer owned by ``OWNER`` starting at height 0."""
    reset_registry_node()
    yield RegistryNode(owner=OWNER)
    reset_registry_node()


def issue_tx(
    passport_id: str,
    holder: str = CITIZEN,
    validity_period: int = 3650,
    metadata_url: Optional[str] = None,
    sender: str = AUTHORITY,
) -> Tx:
    """Build an ``issue-passport`` transaction with default personal data."""
    return Tx(
        method="issue-passport",
        args=(passport_id, holder, "John Doe", 19900101, "Country A", validity_period, metadata_url),
        sender=sender,
    )


def add_authority_tx(identity: str = AUTHORITY, name: str = "Passport Office", sender: str = OWNER) -> Tx:
    return Tx(method="add-authority", args=(identity, name), sender=sender)
