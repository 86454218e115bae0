"""
Core ledger models using Pydantic for validation and hashing.

Coin ids are derived from (transaction hash, block height, output index), so
the same transaction included at two different heights yields two different
coins, while replaying it at the same height yields the same coin again.
"""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, Field

from utxowallet.constants import U64_MAX, ZERO_HASH

Address = str
BlockId = str
CoinId = str


def _sha256_hex(*parts: bytes) -> str:
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part)
    return digest.hexdigest()


class Signature(BaseModel):
    """
    Spend authorization marker attached to an input.

    The wallet never verifies signatures, it only fills them in when building
    transactions so that the result is well formed.
    """

    valid: bool = False
    signer: Address | None = None

    model_config = {"frozen": True}

    @classmethod
    def valid_for(cls, address: Address) -> Signature:
        return cls(valid=True, signer=address)

    @classmethod
    def invalid(cls) -> Signature:
        return cls(valid=False, signer=None)


class Coin(BaseModel):
    value: int = Field(..., ge=0, le=U64_MAX)
    owner: Address

    model_config = {"frozen": True}


class Input(BaseModel):
    coin_id: CoinId
    signature: Signature = Field(default_factory=Signature.invalid)

    model_config = {"frozen": True}

    @classmethod
    def dummy(cls) -> Input:
        """Input spending a coin that can never exist."""
        return cls(coin_id=ZERO_HASH, signature=Signature.invalid())


class Transaction(BaseModel):
    inputs: tuple[Input, ...] = ()
    outputs: tuple[Coin, ...] = ()

    model_config = {"frozen": True}

    def hash(self) -> str:
        """SHA-256 of the canonical JSON encoding of this transaction."""
        return _sha256_hex(self.model_dump_json().encode("utf-8"))

    def coin_id(self, block_height: int, index: int) -> CoinId:
        """
        Identifier of output `index` once included in a block at `block_height`.

        Does not require the transaction to be on any chain, and does not
        check that `index` is in range.
        """
        return _sha256_hex(
            bytes.fromhex(self.hash()),
            block_height.to_bytes(8, "big"),
            index.to_bytes(8, "big"),
        )


class Block(BaseModel):
    parent_id: BlockId
    height: int = Field(..., ge=0)
    transactions: tuple[Transaction, ...] = ()

    model_config = {"frozen": True}

    @classmethod
    def genesis(cls) -> Block:
        return cls(parent_id=ZERO_HASH, height=0, transactions=())

    def id(self) -> BlockId:
        return _sha256_hex(
            bytes.fromhex(self.parent_id),
            self.height.to_bytes(8, "big"),
            *(bytes.fromhex(tx.hash()) for tx in self.transactions),
        )

    def child(self, transactions: list[Transaction] | tuple[Transaction, ...] = ()) -> Block:
        """Build the block extending this one."""
        return Block(parent_id=self.id(), height=self.height + 1, transactions=tuple(transactions))
