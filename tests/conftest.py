"""
Test fixtures and configuration.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from utxowallet.backends.memory import MemoryNode
from utxowallet.config import WalletSettings
from utxowallet.models import Coin, Input, Transaction
from utxowallet.wallet.service import WalletService

ALICE = "alice"
BOB = "bob"


@pytest.fixture
def settings() -> WalletSettings:
    return WalletSettings(
        log_level="DEBUG", change_policy="first_owned", enforce_manual_balance=False
    )


@pytest.fixture
def node() -> MemoryNode:
    return MemoryNode()


@pytest.fixture
def alice_wallet(settings: WalletSettings) -> WalletService:
    return WalletService([ALICE], settings=settings)


@pytest.fixture
def alice_bob_wallet(settings: WalletSettings) -> WalletService:
    return WalletService([ALICE, BOB], settings=settings)


@pytest.fixture
def marker_tx() -> Callable[[int], Transaction]:
    """
    Factory for small transactions that make otherwise identical fork blocks
    hash differently.
    """

    def make(tag: int = 123) -> Transaction:
        return Transaction(
            inputs=[Input.dummy()],
            outputs=[Coin(value=tag, owner=f"custom-{tag}")],
        )

    return make
