"""
Base chain view interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from utxowallet.models import BlockId, Transaction


class ChainView(ABC):
    """
    Abstract read-only view of a node's block tree.

    Implementations must answer for every block they have ever produced, not
    only blocks on the current best chain: a reorg makes the wallet walk
    blocks that used to be best.
    """

    @abstractmethod
    def best_block(self) -> BlockId:
        """Current best tip. May move to any block, including a lower one."""

    @abstractmethod
    def block_height(self, block_id: BlockId) -> int:
        """Height of a known block (genesis is 0)"""

    @abstractmethod
    def block_parent(self, block_id: BlockId) -> BlockId:
        """
        Parent of a known block.

        Raises:
            KeyError: If the block is unknown or is the genesis block
        """

    @abstractmethod
    def block_transactions(self, block_id: BlockId) -> list[Transaction]:
        """Transactions included in a block, in inclusion order"""

    def close(self) -> None:
        """Release any resources held by the view"""
        pass
