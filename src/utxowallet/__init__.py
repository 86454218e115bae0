"""
utxowallet - Reorg-aware UTXO wallet library

Follows a node's best chain, tracks the unspent coins of a fixed set of owned
addresses and builds spend transactions from them.
"""

__version__ = "0.1.0"

from utxowallet.backends import ChainView, MemoryNode
from utxowallet.config import WalletSettings, get_settings
from utxowallet.constants import U64_MAX, ZERO_HASH, saturating_add, saturating_sum
from utxowallet.models import Address, Block, BlockId, Coin, CoinId, Input, Signature, Transaction
from utxowallet.wallet.errors import (
    ForeignAddressError,
    InsufficientFundsError,
    NoOwnedAddressesError,
    UnknownCoinError,
    WalletError,
    ZeroCoinValueError,
    ZeroInputsError,
)
from utxowallet.wallet.service import WalletService

__all__ = [
    "Address",
    "Block",
    "BlockId",
    "ChainView",
    "Coin",
    "CoinId",
    "ForeignAddressError",
    "Input",
    "InsufficientFundsError",
    "MemoryNode",
    "NoOwnedAddressesError",
    "Signature",
    "Transaction",
    "U64_MAX",
    "UnknownCoinError",
    "WalletError",
    "WalletService",
    "WalletSettings",
    "ZERO_HASH",
    "ZeroCoinValueError",
    "ZeroInputsError",
    "get_settings",
    "saturating_add",
    "saturating_sum",
]
