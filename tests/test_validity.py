# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for passport validity evaluation (app.registry.validity).

Validity combines the stored revocation flag with the stored expiry height
at query time; the stored flag is never rewritten by the passage of time.
"""

from app.registry import ledger, validity
from tests.conftest import AUTHORITY


class TestIsValidPassport:

    def test_missing_passport_is_invalid(self, state):
        assert validity.is_valid_passport(state, "NONEXISTENT") is False

    def test_fresh_passport_is_valid(self, authorized_state, issue):
        issue(passport_id="VALID123", validity_period=100)
        assert validity.is_valid_passport(authorized_state, "VALID123") is True

    def test_expiry_boundary(self, authorized_state, issue):
        """Issued at 0 with period 100: valid through 100, invalid from 101."""
        issue(passport_id="PP1", holder="H", validity_period=100)

        authorized_state.set_height(100)
        assert validity.is_valid_passport(authorized_state, "PP1") is True

        authorized_state.set_height(101)
        assert validity.is_valid_passport(authorized_state, "PP1") is False

    def test_expired_record_keeps_raw_flag(self, authorized_state, issue):
        issue(passport_id="PP1", holder="H", validity_period=100)
        authorized_state.set_height(101)

        assert validity.is_valid_passport(authorized_state, "PP1") is False
        assert ledger.get_passport(authorized_state, "PP1").is_valid is True

    def test_expired_stays_expired_without_extension(self, authorized_state, issue):
        issue(passport_id="PP1", validity_period=10)
        for height in (11, 50, 1000, 10**9):
            authorized_state.set_height(height)
            assert validity.is_valid_passport(authorized_state, "PP1") is False

    def test_extension_restores_time_validity(self, authorized_state, issue):
        issue(passport_id="PP1", validity_period=10)
        authorized_state.set_height(20)
        assert validity.is_valid_passport(authorized_state, "PP1") is False

        ledger.extend_passport_validity(authorized_state, AUTHORITY, "PP1", 15)
        assert validity.is_valid_passport(authorized_state, "PP1") is True

    def test_revocation_is_sticky(self, authorized_state, issue):
        issue(passport_id="REVOKE123", validity_period=100)
        ledger.revoke_passport(authorized_state, AUTHORITY, "REVOKE123")
        assert validity.is_valid_passport(authorized_state, "REVOKE123") is False

        ledger.extend_passport_validity(authorized_state, AUTHORITY, "REVOKE123", 10_000)
        assert validity.is_valid_passport(authorized_state, "REVOKE123") is False

    def test_zero_validity_valid_only_at_issuance(self, authorized_state, issue):
        issue(passport_id="PP0", validity_period=0)
        assert validity.is_valid_passport(authorized_state, "PP0") is True
        authorized_state.set_height(1)
        assert validity.is_valid_passport(authorized_state, "PP0") is False

    def test_evaluate_does_not_mutate(self, authorized_state, issue):
        issue(passport_id="PP1", validity_period=1)
        passport = ledger.get_passport(authorized_state, "PP1")
        assert validity.evaluate(passport, 5) is False
        assert passport.is_valid is True
        assert passport.expiry_height == 1
