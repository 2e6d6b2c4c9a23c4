# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Explicit state store for the passport registry.

All registry operations take a :class:`RegistryState` by reference instead of
touching module-level globals. The owner is fixed at construction. The logical
clock (``height``) is set by the hosting sequencer between batches and never
decreases.
"""

import copy
from typing import Dict, Optional

from app.registry.models import Authority, Passport

# Largest value a height or unsigned argument may take (signed 64-bit column)
MAX_UINT = 2**63 - 1


class RegistryState:
    """Owner, active authority set, passport ledger and holder index."""

    def __init__(self, owner: str, height: int = 0):
        if not owner:
            raise ValueError("owner identity must be non-empty")
        if not 0 <= height <= MAX_UINT:
            raise ValueError(f"height out of range: {height}")
        self._owner = owner
        self._height = height
        self.authorities: Dict[str, Authority] = {}
        self.passports: Dict[str, Passport] = {}
        self.holder_index: Dict[str, str] = {}

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def height(self) -> int:
        return self._height

    def set_height(self, height: int) -> None:
        """Move the logical clock forward to ``height``."""
        if height < self._height:
            raise ValueError(
                f"height must be nondecreasing: current={self._height}, requested={height}"
            )
        if height > MAX_UINT:
            raise ValueError(f"height out of range: {height}")
        self._height = height

    def snapshot(self) -> dict:
        """Deep copy of everything mutable, for :meth:`restore`."""
        return copy.deepcopy({
            "height": self._height,
            "authorities": self.authorities,
            "passports": self.passports,
            "holder_index": self.holder_index,
        })

    def restore(self, snapshot: dict) -> None:
        """Roll back to a :meth:`snapshot` in place; the clock may move back."""
        self._height = snapshot["height"]
        self.authorities = snapshot["authorities"]
        self.passports = snapshot["passports"]
        self.holder_index = snapshot["holder_index"]

    def get_authority(self, identity: str) -> Optional[Authority]:
        return self.authorities.get(identity)

    def get_passport(self, passport_id: str) -> Optional[Passport]:
        return self.passports.get(passport_id)

    def stats(self) -> dict:
        return {
            "height": self._height,
            "authorities": len(self.authorities),
            "passports": len(self.passports),
            "revoked": sum(1 for p in self.passports.values() if not p.is_valid),
        }
