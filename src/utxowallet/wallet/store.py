"""
Filtered UTXO store with a per-block undo log.

Only coins owned by one of the wallet's addresses are ever stored. Every
applied block pushes an UndoRecord so the block can be reverted without
querying the node again.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from loguru import logger

from utxowallet.models import Address, BlockId, Coin, CoinId, Transaction
from utxowallet.wallet.errors import UnknownCoinError
from utxowallet.wallet.models import UndoRecord, UTXOInfo


class UtxoStore:
    def __init__(self, owned_addresses: Iterable[Address]):
        self.owned_addresses: frozenset[Address] = frozenset(owned_addresses)
        self._coins: dict[CoinId, Coin] = {}
        self._by_owner: dict[Address, set[CoinId]] = {
            address: set() for address in self.owned_addresses
        }
        self._undo_stack: list[UndoRecord] = []

    def __len__(self) -> int:
        return len(self._coins)

    def __contains__(self, coin_id: object) -> bool:
        return coin_id in self._coins

    @property
    def depth(self) -> int:
        """Number of blocks currently applied"""
        return len(self._undo_stack)

    def owns(self, address: Address) -> bool:
        return address in self.owned_addresses

    def _insert(self, coin_id: CoinId, coin: Coin) -> None:
        self._coins[coin_id] = coin
        self._by_owner[coin.owner].add(coin_id)

    def _remove(self, coin_id: CoinId) -> Coin | None:
        coin = self._coins.pop(coin_id, None)
        if coin is not None:
            self._by_owner[coin.owner].discard(coin_id)
        return coin

    def apply_block(
        self,
        transactions: Iterable[Transaction],
        height: int,
        block_id: BlockId | None = None,
    ) -> UndoRecord:
        """
        Apply a block's transactions in order and push its undo record.

        Inputs are processed before outputs within each transaction, and each
        transaction sees the outputs of the ones before it in the same block.
        Inputs we do not track are ignored.
        """
        record = UndoRecord(block_id=block_id)

        for tx in transactions:
            for tx_input in tx.inputs:
                spent = self._remove(tx_input.coin_id)
                if spent is not None:
                    record.removed.append((tx_input.coin_id, spent))

            for index, coin in enumerate(tx.outputs):
                if coin.owner not in self.owned_addresses:
                    continue
                coin_id = tx.coin_id(height, index)
                self._insert(coin_id, coin)
                record.added.append(coin_id)

        self._undo_stack.append(record)
        logger.debug(
            f"Applied block at height {height}: "
            f"-{len(record.removed)} +{len(record.added)} coins"
        )
        return record

    def undo_last_block(self) -> UndoRecord:
        """
        Revert the most recently applied block.

        Raises:
            IndexError: If no block is applied
        """
        if not self._undo_stack:
            raise IndexError("No applied block to undo")

        record = self._undo_stack.pop()

        # Every added id carries this block's height, so none of them existed
        # before the block: restoring removals first and then dropping all
        # additions also handles coins created and spent inside the block.
        for coin_id, coin in reversed(record.removed):
            self._insert(coin_id, coin)
        for coin_id in reversed(record.added):
            self._remove(coin_id)

        logger.debug(
            f"Undid block {record.block_id}: "
            f"+{len(record.removed)} -{len(record.added)} coins"
        )
        return record

    def coin_details(self, coin_id: CoinId) -> Coin:
        coin = self._coins.get(coin_id)
        if coin is None:
            raise UnknownCoinError(f"Unknown coin: {coin_id}")
        return coin

    def coins(self) -> Iterator[tuple[CoinId, Coin]]:
        return iter(self._coins.items())

    def coins_of(self, address: Address) -> list[UTXOInfo]:
        """Stored coins of one owned address (empty for foreign addresses)."""
        return [
            UTXOInfo(coin_id=coin_id, value=self._coins[coin_id].value, owner=address)
            for coin_id in self._by_owner.get(address, ())
        ]

    def utxos(self) -> list[UTXOInfo]:
        return [
            UTXOInfo(coin_id=coin_id, value=coin.value, owner=coin.owner)
            for coin_id, coin in self._coins.items()
        ]
