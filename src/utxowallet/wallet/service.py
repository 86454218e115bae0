"""
UTXO wallet service.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from loguru import logger

from utxowallet.backends.base import ChainView
from utxowallet.config import WalletSettings
from utxowallet.constants import saturating_sum
from utxowallet.models import Address, BlockId, Coin, CoinId, Transaction
from utxowallet.wallet.builder import TransactionBuilder
from utxowallet.wallet.errors import ForeignAddressError
from utxowallet.wallet.models import UTXOInfo
from utxowallet.wallet.store import UtxoStore
from utxowallet.wallet.sync import ChainSynchronizer


class WalletService:
    """
    Wallet following a node's best chain.

    Tracks the unspent coins of a fixed set of owned addresses and builds
    spends from them. All reads answer from the last sync; only `sync`
    talks to the node.
    """

    def __init__(
        self,
        owned_addresses: Iterable[Address],
        settings: WalletSettings | None = None,
    ):
        # Deduplicated, construction order kept (first one receives change)
        self.owned_addresses: tuple[Address, ...] = tuple(dict.fromkeys(owned_addresses))
        self.settings = settings or WalletSettings()

        self.store = UtxoStore(self.owned_addresses)
        self.synchronizer = ChainSynchronizer(self.store)
        self.builder = TransactionBuilder(self.store, self.owned_addresses, self.settings)
        self._lock = threading.RLock()

        logger.info(f"Initialized wallet with {len(self.owned_addresses)} owned address(es)")

    def sync(self, view: ChainView) -> tuple[int, int]:
        """Catch up with the view's best block. Returns (undone, applied) block counts."""
        with self._lock:
            return self.synchronizer.sync(view)

    def best_height(self) -> int:
        with self._lock:
            return self.synchronizer.best_height

    def best_hash(self) -> BlockId:
        with self._lock:
            return self.synchronizer.best_hash

    def _require_owned(self, address: Address) -> None:
        if not self.store.owns(address):
            raise ForeignAddressError(f"Address not owned by this wallet: {address}")

    def total_assets_of(self, address: Address) -> int:
        """Saturating sum of the address's unspent coins"""
        with self._lock:
            self._require_owned(address)
            return saturating_sum(utxo.value for utxo in self.store.coins_of(address))

    def net_worth(self) -> int:
        with self._lock:
            return saturating_sum(coin.value for _, coin in self.store.coins())

    def all_coins_of(self, address: Address) -> set[tuple[CoinId, int]]:
        with self._lock:
            self._require_owned(address)
            return {(utxo.coin_id, utxo.value) for utxo in self.store.coins_of(address)}

    def coin_details(self, coin_id: CoinId) -> Coin:
        with self._lock:
            return self.store.coin_details(coin_id)

    def create_manual_transaction(
        self, input_coin_ids: Sequence[CoinId], output_coins: Sequence[Coin]
    ) -> Transaction:
        with self._lock:
            return self.builder.create_manual_transaction(input_coin_ids, output_coins)

    def create_automatic_transaction(
        self, destination: Address, amount: int, tip: int
    ) -> Transaction:
        with self._lock:
            return self.builder.create_automatic_transaction(destination, amount, tip)

    def utxo_summary(self) -> dict[Address, list[UTXOInfo]]:
        """Unspent coins grouped by owned address, smallest first"""
        with self._lock:
            return {
                address: sorted(
                    self.store.coins_of(address), key=lambda u: (u.value, u.coin_id)
                )
                for address in self.owned_addresses
            }
