"""
Scripted node scenarios.

A scenario is a JSON document listing node mutations and wallet syncs:

    {
      "owners": ["alice", "bob"],
      "steps": [
        {"action": "add_block", "name": "b1", "parent": "genesis",
         "transactions": [{"outputs": [{"value": 10, "owner": "alice"}]}]},
        {"action": "sync"},
        {"action": "add_block", "name": "b2", "parent": "b1",
         "transactions": [{"inputs": [{"coin": {"block": "b1", "tx": 0, "output": 0}}],
                           "outputs": [{"value": 10, "owner": "carol"}]}]},
        {"action": "set_best", "block": "b1"},
        {"action": "sync"}
      ]
    }

Coins are referenced by the scenario name of the block that created them, so
the coin id is derived from that block's actual height.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Literal

from loguru import logger
from pydantic import BaseModel, Field

from utxowallet.backends.memory import MemoryNode
from utxowallet.models import Address, BlockId, Coin, Input, Signature, Transaction
from utxowallet.wallet.service import WalletService

GENESIS_NAME = "genesis"


class ScenarioError(Exception):
    pass


class CoinRef(BaseModel):
    block: str
    tx: int = Field(default=0, ge=0)
    output: int = Field(default=0, ge=0)


class InputSpec(BaseModel):
    coin: CoinRef | None = None
    dummy: bool = False
    signer: Address | None = None


class TransactionSpec(BaseModel):
    inputs: list[InputSpec] = Field(default_factory=list)
    outputs: list[Coin] = Field(default_factory=list)


class AddBlockStep(BaseModel):
    action: Literal["add_block"]
    name: str = Field(..., min_length=1)
    parent: str = GENESIS_NAME
    transactions: list[TransactionSpec] = Field(default_factory=list)
    best: bool = True


class SetBestStep(BaseModel):
    action: Literal["set_best"]
    block: str


class SyncStep(BaseModel):
    action: Literal["sync"]


Step = Annotated[AddBlockStep | SetBestStep | SyncStep, Field(discriminator="action")]


@dataclass
class SyncSnapshot:
    """Wallet state right after one scenario sync"""

    height: int
    best_hash: BlockId
    undone: int
    applied: int
    queries: int
    net_worth: int
    balances: dict[Address, int] = field(default_factory=dict)


class Scenario(BaseModel):
    owners: list[Address] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> Scenario:
        return cls.model_validate_json(path.read_text())

    def run(self, node: MemoryNode, wallet: WalletService) -> list[SyncSnapshot]:
        """Apply every step in order and snapshot the wallet after each sync."""
        names: dict[str, BlockId] = {GENESIS_NAME: node.genesis_id}
        snapshots: list[SyncSnapshot] = []

        for step in self.steps:
            if isinstance(step, AddBlockStep):
                if step.name in names:
                    raise ScenarioError(f"Duplicate block name: {step.name}")
                parent_id = self._lookup(names, step.parent)
                transactions = [self._build_tx(node, names, tx_def) for tx_def in step.transactions]
                if step.best:
                    names[step.name] = node.add_block_as_best(parent_id, transactions)
                else:
                    names[step.name] = node.add_block(parent_id, transactions)
            elif isinstance(step, SetBestStep):
                node.set_best(self._lookup(names, step.block))
            else:
                before = node.how_many_queries()
                undone, applied = wallet.sync(node)
                snapshots.append(
                    SyncSnapshot(
                        height=wallet.best_height(),
                        best_hash=wallet.best_hash(),
                        undone=undone,
                        applied=applied,
                        queries=node.how_many_queries() - before,
                        net_worth=wallet.net_worth(),
                        balances={
                            owner: wallet.total_assets_of(owner)
                            for owner in wallet.owned_addresses
                        },
                    )
                )
                logger.debug(f"Scenario sync #{len(snapshots)} at height {wallet.best_height()}")

        return snapshots

    @staticmethod
    def _lookup(names: dict[str, BlockId], name: str) -> BlockId:
        try:
            return names[name]
        except KeyError:
            raise ScenarioError(f"Unknown block name: {name}") from None

    def _build_tx(
        self, node: MemoryNode, names: dict[str, BlockId], tx_def: TransactionSpec
    ) -> Transaction:
        inputs: list[Input] = []
        for input_spec in tx_def.inputs:
            if input_spec.coin is None:
                if not input_spec.dummy:
                    raise ScenarioError("Input needs either a coin reference or dummy=true")
                inputs.append(Input.dummy())
                continue

            ref = input_spec.coin
            block = node.get_block(self._lookup(names, ref.block))
            if ref.tx >= len(block.transactions):
                raise ScenarioError(f"Block {ref.block} has no transaction #{ref.tx}")
            signature = (
                Signature.valid_for(input_spec.signer)
                if input_spec.signer
                else Signature.invalid()
            )
            coin_id = block.transactions[ref.tx].coin_id(block.height, ref.output)
            inputs.append(Input(coin_id=coin_id, signature=signature))

        return Transaction(inputs=tuple(inputs), outputs=tuple(tx_def.outputs))
