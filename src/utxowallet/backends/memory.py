"""
In-memory node backend.

Keeps every block it has ever been given and lets the caller decide which one
is best; there is no fork-choice rule. Every ChainView call is counted so
callers can check how much a sync cost.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from utxowallet.backends.base import ChainView
from utxowallet.models import Block, BlockId, Transaction


class MemoryNode(ChainView):
    """
    Block tree held in process memory.

    Starts with only the genesis block, which is also the initial best block.
    """

    def __init__(self) -> None:
        genesis = Block.genesis()
        self.genesis_id: BlockId = genesis.id()
        self._blocks: dict[BlockId, Block] = {self.genesis_id: genesis}
        self._best: BlockId = self.genesis_id
        self._queries = 0

    # Node mutations (not part of ChainView, never counted)

    def add_block(self, parent_id: BlockId, transactions: Iterable[Transaction] = ()) -> BlockId:
        """
        Add a block on top of `parent_id` without changing the best block.

        Raises:
            KeyError: If the parent is unknown
        """
        parent = self._blocks[parent_id]
        block = parent.child(tuple(transactions))
        block_id = block.id()
        self._blocks[block_id] = block
        logger.debug(f"Node added block {block_id[:16]} at height {block.height}")
        return block_id

    def add_block_as_best(
        self, parent_id: BlockId, transactions: Iterable[Transaction] = ()
    ) -> BlockId:
        block_id = self.add_block(parent_id, transactions)
        self._best = block_id
        return block_id

    def set_best(self, block_id: BlockId) -> None:
        if block_id not in self._blocks:
            raise KeyError(f"Unknown block: {block_id}")
        self._best = block_id

    def get_block(self, block_id: BlockId) -> Block:
        return self._blocks[block_id]

    def best_block_at_height(self, height: int) -> BlockId | None:
        """Block at `height` on the current best chain, None above the tip."""
        cursor = self._blocks[self._best]
        if height < 0 or height > cursor.height:
            return None
        while cursor.height > height:
            cursor = self._blocks[cursor.parent_id]
        return cursor.id()

    def how_many_queries(self) -> int:
        return self._queries

    def reset_query_count(self) -> None:
        self._queries = 0

    # ChainView

    def best_block(self) -> BlockId:
        self._queries += 1
        return self._best

    def block_height(self, block_id: BlockId) -> int:
        self._queries += 1
        return self._blocks[block_id].height

    def block_parent(self, block_id: BlockId) -> BlockId:
        self._queries += 1
        block = self._blocks[block_id]
        if block.height == 0:
            raise KeyError("Genesis block has no parent")
        return block.parent_id

    def block_transactions(self, block_id: BlockId) -> list[Transaction]:
        self._queries += 1
        return list(self._blocks[block_id].transactions)
