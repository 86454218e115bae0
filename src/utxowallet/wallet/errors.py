"""
Wallet errors.

All of these are expected, recoverable conditions reported to the caller.
"""

from __future__ import annotations


class WalletError(Exception):
    pass


class ForeignAddressError(WalletError):
    """Query about an address the wallet does not own."""


class UnknownCoinError(WalletError):
    """Coin id is not an owned, unspent coin (or is referenced twice)."""


class ZeroCoinValueError(WalletError):
    pass


class ZeroInputsError(WalletError):
    pass


class InsufficientFundsError(WalletError):
    pass


class NoOwnedAddressesError(WalletError):
    pass
