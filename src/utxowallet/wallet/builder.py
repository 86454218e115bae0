"""
Transaction builder for wallet spends.

Builds unsigned-by-contract transactions from the wallet's current UTXO view:
- manual: caller picks the coins and the outputs
- automatic: smallest-first coin selection, one payment output and an
  optional change output

Building never changes the store. Spent coins only disappear once the
transaction is seen in a synced block.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from utxowallet.config import WalletSettings
from utxowallet.constants import saturating_add
from utxowallet.models import Address, Coin, CoinId, Input, Signature, Transaction
from utxowallet.wallet.errors import (
    InsufficientFundsError,
    NoOwnedAddressesError,
    UnknownCoinError,
    ZeroCoinValueError,
    ZeroInputsError,
)
from utxowallet.wallet.models import CoinSelection, UTXOInfo
from utxowallet.wallet.store import UtxoStore


class TransactionBuilder:
    def __init__(
        self,
        store: UtxoStore,
        owned_addresses: Sequence[Address],
        settings: WalletSettings | None = None,
    ):
        self.store = store
        self.owned_addresses = tuple(owned_addresses)
        self.settings = settings or WalletSettings()

    def _require_owned_addresses(self) -> None:
        if not self.owned_addresses:
            raise NoOwnedAddressesError("Wallet owns no addresses")

    def create_manual_transaction(
        self, input_coin_ids: Sequence[CoinId], output_coins: Sequence[Coin]
    ) -> Transaction:
        """
        Spend exactly the given coins into exactly the given outputs.

        Raises:
            ZeroInputsError: No inputs given
            NoOwnedAddressesError: Wallet owns no addresses
            UnknownCoinError: An input is not an owned unspent coin, or repeats
            ZeroCoinValueError: An output has value 0
            InsufficientFundsError: Outputs exceed inputs while
                enforce_manual_balance is set
        """
        if not input_coin_ids:
            raise ZeroInputsError("Manual transaction needs at least one input")
        self._require_owned_addresses()

        inputs: list[Input] = []
        input_total = 0
        seen: set[CoinId] = set()
        for coin_id in input_coin_ids:
            if coin_id in seen:
                raise UnknownCoinError(f"Coin referenced twice: {coin_id}")
            seen.add(coin_id)
            coin = self.store.coin_details(coin_id)
            inputs.append(Input(coin_id=coin_id, signature=Signature.valid_for(coin.owner)))
            input_total += coin.value

        for coin in output_coins:
            if coin.value == 0:
                raise ZeroCoinValueError(f"Output to {coin.owner} has zero value")

        if self.settings.enforce_manual_balance:
            output_total = sum(coin.value for coin in output_coins)
            if output_total > input_total:
                raise InsufficientFundsError(
                    f"Outputs {output_total} exceed inputs {input_total}"
                )

        return Transaction(inputs=tuple(inputs), outputs=tuple(output_coins))

    def select_coins(self, target: int) -> CoinSelection:
        """
        Select the fewest smallest coins reaching `target`.

        Coins are taken in ascending value order (ties by coin id) until the
        running total reaches the target. The total is exact, so the change is
        always smaller than the last coin taken.
        """
        eligible = sorted(self.store.utxos(), key=lambda u: (u.value, u.coin_id))

        selected: list[UTXOInfo] = []
        total = 0
        for utxo in eligible:
            if total >= target:
                break
            selected.append(utxo)
            total += utxo.value

        if total < target:
            raise InsufficientFundsError(f"Insufficient funds: need {target}, have {total}")

        return CoinSelection(
            utxos=selected, total_value=total, target=target, change_value=total - target
        )

    def _change_address(self, selection: CoinSelection) -> Address:
        if self.settings.change_policy == "largest_input":
            largest = max(selection.utxos, key=lambda u: (u.value, u.coin_id))
            return largest.owner
        return self.owned_addresses[0]

    def create_automatic_transaction(
        self, destination: Address, amount: int, tip: int
    ) -> Transaction:
        """
        Pay `amount` to `destination`, burning `tip`.

        Raises:
            NoOwnedAddressesError: Wallet owns no addresses
            ZeroCoinValueError: `amount` is 0
            InsufficientFundsError: Owned coins do not cover amount + tip
        """
        self._require_owned_addresses()
        if amount == 0:
            raise ZeroCoinValueError("Cannot send a zero value coin")

        target = saturating_add(amount, tip)
        selection = self.select_coins(target)

        outputs = [Coin(value=amount, owner=destination)]
        if selection.change_value > 0:
            change_owner = self._change_address(selection)
            outputs.append(Coin(value=selection.change_value, owner=change_owner))

        logger.debug(
            f"Selected {len(selection.utxos)} coin(s) worth {selection.total_value} "
            f"for target {selection.target}, change {selection.change_value}"
        )

        inputs = [
            Input(coin_id=utxo.coin_id, signature=Signature.valid_for(utxo.owner))
            for utxo in selection.utxos
        ]
        return Transaction(inputs=tuple(inputs), outputs=tuple(outputs))
