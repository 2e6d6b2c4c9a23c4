# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Authority registry: which identities may issue and manage passports.

Only the owner may add or remove authorities. An identity is an authority
iff it has an entry in ``state.authorities``; removal deletes the entry
outright, so a later re-add starts from a fresh record.

Passports issued by a removed authority are unaffected. Their
``issuing_authority`` field is historical, not a live reference.
"""

import logging
from typing import Optional

from app.registry.errors import RegistryError
from app.registry.models import Authority
from app.registry.state import RegistryState

logger = logging.getLogger("passport_registry.authority")


# =============================================================================
# Authorization gates
# =============================================================================

def require_owner(state: RegistryState, caller: str) -> None:
    """Raise ``UNAUTHORIZED`` unless ``caller`` is the registry owner."""
    if caller != state.owner:
        raise RegistryError.unauthorized(caller, "the registry owner")


def require_authority(state: RegistryState, caller: str) -> None:
    """Raise ``UNAUTHORIZED`` unless ``caller`` is a currently active authority."""
    if not is_authority(state, caller):
        raise RegistryError.unauthorized(caller, "an active authority")


# =============================================================================
# Mutations (owner-only)
# =============================================================================

def add_authority(state: RegistryState, caller: str, identity: str, name: str) -> bool:
    require_owner(state, caller)
    if identity in state.authorities:
        raise RegistryError.already_exists("authority", identity)

    state.authorities[identity] = Authority(
        identity=identity,
        name=name,
        added_at_height=state.height,
    )
    logger.info("Authority added: identity=%s name=%r height=%d", identity, name, state.height)
    return True


def remove_authority(state: RegistryState, caller: str, identity: str) -> bool:
    require_owner(state, caller)
    if identity not in state.authorities:
        raise RegistryError.not_found("authority", identity)

    del state.authorities[identity]
    logger.info("Authority removed: identity=%s height=%d", identity, state.height)
    return True


# =============================================================================
# Queries
# =============================================================================

def is_authority(state: RegistryState, identity: str) -> bool:
    return identity in state.authorities


def get_authority(state: RegistryState, identity: str) -> Optional[Authority]:
    return state.get_authority(identity)


def get_owner(state: RegistryState) -> str:
    return state.owner
