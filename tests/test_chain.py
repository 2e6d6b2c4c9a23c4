# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for the block sequencer (app.registry.chain).

Covers per-block height semantics, receipt ordering, independence of
transactions within a block, clock advancement, rollback of failed blocks,
commit hooks, and the module-level singleton.
"""

import asyncio

import pytest

from app.registry.chain import RegistryNode, get_registry_node, reset_registry_node
from app.registry.errors import ErrorCode, MalformedCallError
from app.registry.models import Tx
from app.registry.state import MAX_UINT
from tests.conftest import AUTHORITY, CITIZEN, OTHER_AUTHORITY, OUTSIDER, OWNER, add_authority_tx, issue_tx


class TestMineBlock:

    @pytest.mark.asyncio
    async def test_receipts_in_submission_order(self, node):
        block = await node.mine_block([
            add_authority_tx(AUTHORITY, "First Authority"),
            add_authority_tx(AUTHORITY, "Duplicate Authority"),
        ])

        assert len(block.receipts) == 2
        assert block.receipts[0].result.ok is True
        assert block.receipts[1].result.error == ErrorCode.ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_later_tx_sees_earlier_effects(self, node):
        """Authority added earlier in the block can issue later in the same block."""
        block = await node.mine_block([add_authority_tx(), issue_tx("VALID123", validity_period=100)])
        assert all(r.result.ok for r in block.receipts)

    @pytest.mark.asyncio
    async def test_rejected_tx_does_not_affect_neighbours(self, node):
        block = await node.mine_block([
            add_authority_tx(),
            issue_tx("PP1", holder=CITIZEN),
            issue_tx("PP2", holder=CITIZEN),
            issue_tx("PP3", holder=OUTSIDER),
        ])

        assert [r.result.ok for r in block.receipts] == [True, True, False, True]
        assert node.call_read_only("get-holder-passport", [OUTSIDER]) == "PP3"

    @pytest.mark.asyncio
    async def test_all_txs_share_block_height(self, node):
        await node.advance_to(5)
        block = await node.mine_block([
            add_authority_tx(),
            issue_tx("PP1", holder="H1", validity_period=10),
            issue_tx("PP2", holder="H2", validity_period=10),
        ])

        assert block.height == 5
        for passport_id in ("PP1", "PP2"):
            assert node.call_read_only("get-passport", [passport_id]).issued_at_height == 5
        assert node.call_read_only("get-authority", [AUTHORITY]).added_at_height == 5

    @pytest.mark.asyncio
    async def test_height_advances_after_block(self, node):
        assert node.height == 0
        block = await node.mine_block([])
        assert block.height == 0
        assert node.height == 1

    @pytest.mark.asyncio
    async def test_malformed_tx_rejects_whole_block(self, node):
        with pytest.raises(MalformedCallError):
            await node.mine_block([
                add_authority_tx(),
                Tx(method="issue-passport", args=("PP1",), sender=AUTHORITY),
            ])

        assert node.height == 0
        assert node.call_read_only("is-authority", [AUTHORITY]) is False

    @pytest.mark.asyncio
    async def test_empty_sender_rejected(self, node):
        with pytest.raises(MalformedCallError):
            await node.mine_block([add_authority_tx(sender="")])

    @pytest.mark.asyncio
    async def test_concurrent_submissions_serialized(self, node):
        await node.mine_block([add_authority_tx()])
        blocks = await asyncio.gather(*[
            node.mine_block([issue_tx(f"PP{i}", holder=f"H{i}")]) for i in range(10)
        ])

        assert sorted(b.height for b in blocks) == list(range(1, 11))
        assert node.height == 11


class TestClock:

    @pytest.mark.asyncio
    async def test_passport_expiry_scenario(self, node):
        """Issued in block 0 with validity 100: valid through tip 100, invalid at 101."""
        block = await node.mine_block([add_authority_tx(), issue_tx("PP1", holder="H", validity_period=100)])
        assert block.height == 0
        assert node.tip_height == 0
        assert node.call_read_only("is-valid-passport?", ["PP1"]) is True

        await node.mine_empty_blocks(100)
        assert node.tip_height == 100
        assert node.call_read_only("is-valid-passport?", ["PP1"]) is True

        await node.mine_empty_blocks(1)
        assert node.tip_height == 101
        assert node.call_read_only("is-valid-passport?", ["PP1"]) is False
        assert node.call_read_only("get-passport", ["PP1"]).is_valid is True

    @pytest.mark.asyncio
    async def test_zero_validity_valid_at_issuing_block(self, node):
        await node.mine_block([add_authority_tx(), issue_tx("PP0", validity_period=0)])
        assert node.call_read_only("is-valid-passport?", ["PP0"]) is True

        await node.mine_empty_blocks(1)
        assert node.call_read_only("is-valid-passport?", ["PP0"]) is False

    @pytest.mark.asyncio
    async def test_queries_see_block_height_after_commit(self, node):
        """A block's transactions and the queries after it observe the same height."""
        await node.advance_to(7)
        block = await node.mine_block([add_authority_tx(), issue_tx("PP1", validity_period=0)])
        assert block.height == node.tip_height == 7
        assert node.height == 8
        assert node.call_read_only("is-valid-passport?", ["PP1"]) is True

    @pytest.mark.asyncio
    async def test_mine_empty_blocks(self, node):
        assert await node.mine_empty_blocks(101) == 101
        assert node.stats()["blocks_mined"] == 101

    @pytest.mark.asyncio
    async def test_zero_empty_blocks_is_noop(self, node):
        assert await node.mine_empty_blocks(0) == 0

    @pytest.mark.asyncio
    async def test_clock_never_goes_back(self, node):
        await node.advance_to(10)
        with pytest.raises(ValueError):
            await node.advance_to(9)
        with pytest.raises(ValueError):
            await node.mine_empty_blocks(-1)
        assert node.height == 10

    @pytest.mark.asyncio
    async def test_clock_bounded(self, node):
        with pytest.raises(ValueError):
            await node.mine_empty_blocks(MAX_UINT + 1)
        assert node.height == 0

    @pytest.mark.asyncio
    async def test_extension_after_expiry(self, node):
        await node.mine_block([add_authority_tx(), issue_tx("EXTEND123", validity_period=100)])
        await node.advance_to(300)
        assert node.call_read_only("is-valid-passport?", ["EXTEND123"]) is False

        block = await node.mine_block([
            Tx(method="extend-passport-validity", args=("EXTEND123", 1000), sender=AUTHORITY),
        ])
        assert block.receipts[0].result.ok is True
        assert node.call_read_only("get-passport", ["EXTEND123"]).expiry_height == 1100
        assert node.call_read_only("is-valid-passport?", ["EXTEND123"]) is True


class TestRollback:

    @pytest.mark.asyncio
    async def test_expiry_overflow_rolls_back_block(self, node):
        await node.mine_block([add_authority_tx(), issue_tx("PP1", holder="H1", validity_period=MAX_UINT - 5)])

        with pytest.raises(MalformedCallError):
            await node.mine_block([
                issue_tx("PP2", holder="H2"),
                Tx(method="extend-passport-validity", args=("PP1", 10), sender=AUTHORITY),
            ])

        assert node.height == 1
        assert node.call_read_only("get-passport", ["PP2"]) is None
        assert node.call_read_only("get-holder-passport", ["H2"]) is None
        assert node.call_read_only("get-passport", ["PP1"]).expiry_height == MAX_UINT - 5

    @pytest.mark.asyncio
    async def test_issue_overflow_rejected(self, node):
        await node.mine_block([add_authority_tx()])
        with pytest.raises(MalformedCallError):
            await node.mine_block([issue_tx("BIG", validity_period=MAX_UINT)])
        assert node.call_read_only("get-passport", ["BIG"]) is None

    @pytest.mark.asyncio
    async def test_unbounded_argument_rejected_before_apply(self, node):
        await node.mine_block([add_authority_tx()])
        with pytest.raises(MalformedCallError):
            await node.mine_block([issue_tx("BIG", validity_period=2**64)])
        assert node.height == 1


class TestCommitHooks:

    @pytest.mark.asyncio
    async def test_hook_sees_committed_state(self, node):
        seen = []
        node.add_commit_hook(lambda state, block: seen.append((state.height, block.height, len(block.receipts))))

        await node.mine_block([add_authority_tx()])
        await node.mine_empty_blocks(3)

        assert seen == [(1, 0, 1), (4, 3, 0)]

    @pytest.mark.asyncio
    async def test_hook_failure_rolls_back(self, node):
        await node.mine_block([add_authority_tx()])

        def failing_hook(state, block):
            raise RuntimeError("disk full")

        node.add_commit_hook(failing_hook)
        with pytest.raises(RuntimeError, match="disk full"):
            await node.mine_block([issue_tx("PP1")])
        with pytest.raises(RuntimeError, match="disk full"):
            await node.mine_empty_blocks(5)

        assert node.height == 1
        assert node.call_read_only("get-passport", ["PP1"]) is None
        assert node.call_read_only("get-holder-passport", [CITIZEN]) is None
        assert node.stats()["blocks_mined"] == 1

    @pytest.mark.asyncio
    async def test_node_usable_after_hook_recovers(self, node):
        calls = {"fail": True}

        def flaky_hook(state, block):
            if calls["fail"]:
                calls["fail"] = False
                raise RuntimeError("transient")

        node.add_commit_hook(flaky_hook)
        with pytest.raises(RuntimeError):
            await node.mine_block([add_authority_tx()])

        block = await node.mine_block([add_authority_tx(), issue_tx("PP1")])
        assert block.height == 0
        assert all(r.result.ok for r in block.receipts)


class TestRemovedAuthority:

    @pytest.mark.asyncio
    async def test_removed_issuer_loses_all_rights(self, node):
        await node.mine_block([
            add_authority_tx(),
            add_authority_tx(OTHER_AUTHORITY, "Consulate"),
            issue_tx("PP1", holder=CITIZEN),
        ])
        await node.mine_block([Tx(method="remove-authority", args=(AUTHORITY,), sender=OWNER)])

        block = await node.mine_block([
            Tx(method="revoke-passport", args=("PP1",), sender=AUTHORITY),
            Tx(method="update-passport-metadata", args=("PP1", "https://x"), sender=AUTHORITY),
            Tx(method="extend-passport-validity", args=("PP1", 10), sender=AUTHORITY),
            issue_tx("PP9", holder="H9"),
            Tx(method="revoke-passport", args=("PP1",), sender=OTHER_AUTHORITY),
        ])

        errors = [r.result.error for r in block.receipts]
        assert errors == [ErrorCode.UNAUTHORIZED] * 4 + [None]
        assert node.call_read_only("get-passport", ["PP1"]).issuing_authority == AUTHORITY


class TestSingleton:

    def test_get_registry_node_is_cached(self, monkeypatch):
        monkeypatch.setattr("app.config.REGISTRY_OWNER", "configured-owner")
        monkeypatch.setattr("app.config.START_HEIGHT", 7)
        reset_registry_node()
        try:
            first = get_registry_node()
            assert first is get_registry_node()
            assert first.owner == "configured-owner"
            assert first.height == 7
        finally:
            reset_registry_node()

    def test_node_requires_owner(self):
        with pytest.raises(ValueError):
            RegistryNode(owner="")
