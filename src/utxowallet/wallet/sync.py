"""
Reorg-aware chain synchronization.

The synchronizer remembers the id of every block it applied, indexed by
height, so it never has to ask the node about its own history. On sync it
walks the node's new best chain backwards only until it meets that history,
undoes the blocks above the meeting point and applies the new ones.

The number of chain view queries is proportional to the number of new
blocks, never to the chain height:
- 1 query when the best block did not change
- 2 + 2 * len(new blocks) otherwise (rolling back is free)
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from utxowallet.backends.base import ChainView
from utxowallet.models import Block, BlockId, Transaction
from utxowallet.wallet.store import UtxoStore


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class ChainSynchronizer:
    def __init__(self, store: UtxoStore, genesis_id: BlockId | None = None):
        self.store = store
        self.state = SyncState.IDLE
        # chain[h] is the id of the applied block at height h
        self._chain: list[BlockId] = [genesis_id or Block.genesis().id()]

    @property
    def best_height(self) -> int:
        return len(self._chain) - 1

    @property
    def best_hash(self) -> BlockId:
        return self._chain[-1]

    def _is_on_chain(self, block_id: BlockId, height: int) -> bool:
        return height <= self.best_height and self._chain[height] == block_id

    def sync(self, view: ChainView) -> tuple[int, int]:
        """
        Follow the view's best block, whatever it is.

        Returns:
            (blocks rolled back, blocks applied)

        Raises:
            ValueError: If the view's chain does not share our genesis block
        """
        new_best = view.best_block()
        if new_best == self.best_hash:
            return 0, 0

        self.state = SyncState.SYNCING
        try:
            return self._reorganize(view, new_best)
        finally:
            self.state = SyncState.IDLE

    def _reorganize(self, view: ChainView, new_best: BlockId) -> tuple[int, int]:
        # Collect everything from the node before touching the store, so a
        # failing view leaves the wallet as it was.
        pending: list[tuple[BlockId, int]] = []
        cursor = new_best
        height = view.block_height(new_best)
        while not self._is_on_chain(cursor, height):
            if height == 0:
                raise ValueError(f"Chain view genesis {cursor} differs from {self._chain[0]}")
            pending.append((cursor, height))
            cursor = view.block_parent(cursor)
            height -= 1

        ancestor_height = height
        apply_chain: list[tuple[BlockId, int, list[Transaction]]] = [
            (block_id, block_height, view.block_transactions(block_id))
            for block_id, block_height in reversed(pending)
        ]

        rollback_count = self.best_height - ancestor_height
        if rollback_count:
            logger.info(
                f"Reorg: rolling back {rollback_count} block(s) above height {ancestor_height}"
            )
        for _ in range(rollback_count):
            self.store.undo_last_block()
            self._chain.pop()

        for block_id, block_height, transactions in apply_chain:
            self.store.apply_block(transactions, block_height, block_id=block_id)
            self._chain.append(block_id)

        logger.info(
            f"Synced to {self.best_hash[:16]} at height {self.best_height} "
            f"({rollback_count} undone, {len(apply_chain)} applied)"
        )
        return rollback_count, len(apply_chain)
