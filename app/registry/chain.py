# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Block sequencer hosting the passport registry.

The registry core is synchronous and assumes a single writer. This module
is the collaborator that provides that guarantee: submissions are grouped
into blocks, each block is applied under an ``asyncio.Lock`` one transaction
at a time in submission order, and every transaction in a block observes the
same height. Height advances by one after each block, and only then.

Each transaction produces a :class:`Receipt`. A rejected transaction leaves
state unchanged and does not affect the other transactions in its block.

After a block is applied, registered commit hooks are invoked with the
state and the block. The persistence layer registers one to snapshot state
to the database.

If applying or committing a block raises, state is rolled back to where it
was before the block. In-memory state never runs ahead of the database.

Read-only queries are evaluated at the chain tip, the height of the last
committed block, which is the height its transactions observed.

References
----------
- :mod:`app.registry.contract`: call surface applied per transaction
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence

from app.registry import contract
from app.registry.errors import MalformedCallError
from app.registry.models import Block, Receipt, Tx
from app.registry.state import RegistryState

logger = logging.getLogger("passport_registry.chain")

__all__ = [
    "CommitHook",
    "RegistryNode",
    "get_registry_node",
    "reset_registry_node",
    "set_registry_node",
]

CommitHook = Callable[[RegistryState, Block], None]


class RegistryNode:
    """Owns one :class:`RegistryState` and sequences blocks against it.

    Parameters
    ----------
    owner : str
        Fixed owner identity of the registry.
    start_height : int
        Height at which the first block executes.
    state : RegistryState, optional
        Pre-populated state (e.g. restored from the database). When given,
        ``owner`` and ``start_height`` are ignored.
    """

    def __init__(
        self,
        owner: str = "",
        start_height: int = 0,
        state: Optional[RegistryState] = None,
    ):
        self._state = state if state is not None else RegistryState(owner, start_height)
        self._lock = asyncio.Lock()
        self._hooks: List[CommitHook] = []
        self._blocks_mined = 0

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def height(self) -> int:
        """Height at which the next block will execute."""
        return self._state.height

    @property
    def tip_height(self) -> int:
        """Height of the last committed block; read-only queries run here."""
        return max(self._state.height - 1, 0)

    @property
    def owner(self) -> str:
        return self._state.owner

    def add_commit_hook(self, hook: CommitHook) -> None:
        self._hooks.append(hook)

    # ------------------------------------------------------------------
    # Block application
    # ------------------------------------------------------------------

    async def mine_block(self, txs: Sequence[Tx]) -> Block:
        """Apply ``txs`` in order at the current height, then advance by one.

        Malformed transactions raise :class:`MalformedCallError` before any
        transaction in the block is applied. If applying or committing the
        block fails, state is rolled back to where it was before the block.
        """
        async with self._lock:
            for tx in txs:
                self._check_decodable(tx)

            snapshot = self._state.snapshot()
            block = Block(height=self._state.height)
            try:
                for tx in txs:
                    result = contract.call(self._state, tx.method, tx.args, tx.sender)
                    block.receipts.append(Receipt(tx=tx, result=result))

                self._state.set_height(block.height + 1)
                self._commit(block)
            except Exception:
                self._state.restore(snapshot)
                logger.warning("Block at height %d rolled back", block.height)
                raise
            return block

    async def mine_empty_blocks(self, count: int) -> int:
        """Mine ``count`` empty blocks and return the new height."""
        if count < 0:
            raise ValueError(f"block count must be non-negative, got {count}")
        async with self._lock:
            if count:
                snapshot = self._state.snapshot()
                self._state.set_height(self._state.height + count)
                try:
                    self._run_hooks(Block(height=self._state.height - 1))
                except Exception:
                    self._state.restore(snapshot)
                    raise
                self._blocks_mined += count
            return self._state.height

    async def advance_to(self, height: int) -> int:
        """Mine empty blocks until the next block would execute at ``height``."""
        if height < self.height:
            raise ValueError(
                f"height must be nondecreasing: current={self.height}, requested={height}"
            )
        return await self.mine_empty_blocks(height - self.height)

    def call_read_only(self, method: str, args: Sequence[Any] = ()) -> Any:
        """Evaluate a read-only query at the chain tip."""
        return contract.read_only(self._state, method, args, height=self.tip_height)

    def stats(self) -> dict:
        data = self._state.stats()
        data["blocks_mined"] = self._blocks_mined
        return data

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_decodable(tx: Tx) -> None:
        signature = contract.MUTATING_METHODS.get(tx.method)
        if signature is None:
            raise MalformedCallError(f"unknown method: {tx.method}")
        if not isinstance(tx.sender, str) or not tx.sender:
            raise MalformedCallError(f"{tx.method}: sender must be a non-empty string")
        contract.decode_args(tx.method, signature, tx.args)

    def _commit(self, block: Block) -> None:
        self._run_hooks(block)
        accepted = sum(1 for r in block.receipts if r.result.ok)
        logger.info(
            "Block committed: height=%d txs=%d accepted=%d rejected=%d",
            block.height, len(block.receipts), accepted, len(block.receipts) - accepted,
        )
        self._blocks_mined += 1

    def _run_hooks(self, block: Block) -> None:
        for hook in self._hooks:
            try:
                hook(self._state, block)
            except Exception:
                logger.exception("Commit hook failed at height %d", block.height)
                raise


# ======================================================================
# Module-level singleton
# ======================================================================

_registry_node: Optional[RegistryNode] = None


def get_registry_node() -> RegistryNode:
    """Return the process-wide node, creating it from config on first use."""
    global _registry_node
    if _registry_node is None:
        from app.config import REGISTRY_OWNER, START_HEIGHT

        _registry_node = RegistryNode(owner=REGISTRY_OWNER, start_height=START_HEIGHT)
        logger.info(
            "Registry node initialized: owner=%s start_height=%d",
            REGISTRY_OWNER, START_HEIGHT,
        )
    return _registry_node


def set_registry_node(node: RegistryNode) -> None:
    """Install ``node`` as the process-wide node (used after restoring state)."""
    global _registry_node
    _registry_node = node


def reset_registry_node() -> None:
    """Discard the process-wide node. Intended for tests."""
    global _registry_node
    _registry_node = None
