# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport validity evaluation.

Validity is derived at read time from the stored revocation flag, the stored
expiry height and the current height. Nothing here writes to state.
"""

from typing import Optional

from app.registry.models import Passport
from app.registry.state import RegistryState


def evaluate(passport: Passport, height: int) -> bool:
    """True iff the passport is unrevoked and ``height`` is within its expiry."""
    return passport.is_valid and height <= passport.expiry_height


def is_valid_passport(state: RegistryState, passport_id: str, height: Optional[int] = None) -> bool:
    """Validity at ``height``, defaulting to the state's clock."""
    passport = state.get_passport(passport_id)
    if passport is None:
        return False
    return evaluate(passport, state.height if height is None else height)
