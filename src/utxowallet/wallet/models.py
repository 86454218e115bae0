"""
Wallet data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from utxowallet.models import Address, BlockId, Coin, CoinId


@dataclass
class UTXOInfo:
    """Owned unspent coin with its id"""

    coin_id: CoinId
    value: int
    owner: Address


@dataclass
class UndoRecord:
    """
    Effect of one applied block on the UTXO store.

    `removed` keeps the full coins so they can be restored without asking the
    node again; `added` only needs the ids.
    """

    block_id: BlockId | None = None
    removed: list[tuple[CoinId, Coin]] = field(default_factory=list)
    added: list[CoinId] = field(default_factory=list)


@dataclass
class CoinSelection:
    """Result of coin selection"""

    utxos: list[UTXOInfo]
    total_value: int
    target: int
    change_value: int
