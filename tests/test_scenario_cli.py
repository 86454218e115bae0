"""
Tests for scripted scenarios and the CLI.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from loguru import logger
from typer.testing import CliRunner

from utxowallet.backends.memory import MemoryNode
from utxowallet.cli import app, format_snapshot
from utxowallet.scenario import Scenario, ScenarioError
from utxowallet.wallet.service import WalletService

runner = CliRunner()

SCENARIO: dict[str, Any] = {
    "owners": ["alice", "bob"],
    "steps": [
        {
            "action": "add_block",
            "name": "b1",
            "transactions": [
                {
                    "outputs": [
                        {"value": 10, "owner": "alice"},
                        {"value": 5, "owner": "bob"},
                    ]
                }
            ],
        },
        {"action": "sync"},
        {
            "action": "add_block",
            "name": "b2",
            "parent": "b1",
            "transactions": [
                {
                    "inputs": [{"coin": {"block": "b1", "tx": 0, "output": 0}, "signer": "alice"}],
                    "outputs": [{"value": 10, "owner": "carol"}],
                }
            ],
        },
        {"action": "sync"},
        {
            "action": "add_block",
            "name": "c1",
            "parent": "genesis",
            "transactions": [
                {"inputs": [{"dummy": True}], "outputs": [{"value": 7, "owner": "alice"}]}
            ],
        },
        {"action": "sync"},
        {"action": "set_best", "block": "b2"},
        {"action": "sync"},
    ],
}


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def scenario_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in ("LOG_LEVEL", "CHANGE_POLICY", "ENFORCE_MANUAL_BALANCE"):
        monkeypatch.delenv(f"UTXO_WALLET_{name}", raising=False)
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(SCENARIO))
    return path


class TestScenario:
    """Tests for running scenarios against a node and wallet."""

    def test_run(self) -> None:
        scenario = Scenario.model_validate(SCENARIO)
        node = MemoryNode()
        wallet = WalletService(scenario.owners)

        snapshots = scenario.run(node, wallet)

        assert [s.height for s in snapshots] == [1, 2, 1, 2]
        assert [s.balances for s in snapshots] == [
            {"alice": 10, "bob": 5},
            {"alice": 0, "bob": 5},
            {"alice": 7, "bob": 0},
            {"alice": 0, "bob": 5},
        ]
        assert [(s.undone, s.applied) for s in snapshots] == [(0, 1), (0, 1), (2, 1), (1, 2)]
        assert [s.queries for s in snapshots] == [4, 4, 4, 6]
        assert snapshots[-1].best_hash == node.best_block_at_height(2)

    def test_signed_input(self) -> None:
        scenario = Scenario.model_validate(SCENARIO)
        node = MemoryNode()
        scenario.run(node, WalletService(scenario.owners))

        b2 = node.get_block(node.best_block_at_height(2) or "")
        signature = b2.transactions[0].inputs[0].signature
        assert signature.valid is True
        assert signature.signer == "alice"

    def test_unknown_block_name(self) -> None:
        scenario = Scenario.model_validate(
            {"owners": ["alice"], "steps": [{"action": "set_best", "block": "nope"}]}
        )
        with pytest.raises(ScenarioError, match="nope"):
            scenario.run(MemoryNode(), WalletService(["alice"]))

    def test_duplicate_block_name(self) -> None:
        scenario = Scenario.model_validate(
            {
                "steps": [
                    {"action": "add_block", "name": "b1"},
                    {"action": "add_block", "name": "b1"},
                ]
            }
        )
        with pytest.raises(ScenarioError, match="Duplicate"):
            scenario.run(MemoryNode(), WalletService([]))

    def test_input_without_coin_or_dummy(self) -> None:
        scenario = Scenario.model_validate(
            {
                "steps": [
                    {"action": "add_block", "name": "b1", "transactions": [{"inputs": [{}]}]},
                ]
            }
        )
        with pytest.raises(ScenarioError):
            scenario.run(MemoryNode(), WalletService([]))


class TestCli:
    """Tests for CLI commands."""

    def test_replay(self, scenario_file: Path) -> None:
        result = runner.invoke(app, ["replay", str(scenario_file), "--log-level", "ERROR"])

        assert result.exit_code == 0
        assert "=== Sync #4 ===" in result.stdout
        assert "Net worth: 5" in result.stdout
        assert "  alice: 0" in result.stdout

    def test_replay_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["replay", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    def test_replay_invalid_scenario(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"steps": [{"action": "explode"}]}))

        result = runner.invoke(app, ["replay", str(path), "--log-level", "ERROR"])
        assert result.exit_code == 1

    def test_pay(self, scenario_file: Path) -> None:
        result = runner.invoke(
            app,
            [
                "pay",
                str(scenario_file),
                "--to",
                "carol",
                "--amount",
                "3",
                "--tip",
                "1",
                "--log-level",
                "ERROR",
            ],
        )

        assert result.exit_code == 0
        tx = json.loads(result.stdout)
        assert len(tx["inputs"]) == 1
        assert tx["outputs"] == [
            {"value": 3, "owner": "carol"},
            {"value": 1, "owner": "alice"},
        ]

    def test_pay_insufficient_funds(self, scenario_file: Path) -> None:
        result = runner.invoke(
            app,
            ["pay", str(scenario_file), "--to", "carol", "--amount", "100", "-l", "ERROR"],
        )
        assert result.exit_code == 1

    def test_format_snapshot(self) -> None:
        scenario = Scenario.model_validate(SCENARIO)
        snapshots = scenario.run(MemoryNode(), WalletService(scenario.owners))

        text = format_snapshot(1, snapshots[0])

        assert text.splitlines()[0] == "=== Sync #1 ==="
        assert "1 applied" in text
        assert "  bob: 5" in text

    def test_node_closed_after_run(
        self, scenario_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        closed: list[MemoryNode] = []
        monkeypatch.setattr(MemoryNode, "close", lambda self: closed.append(self))

        result = runner.invoke(app, ["replay", str(scenario_file), "-l", "ERROR"])

        assert result.exit_code == 0
        assert len(closed) == 1

    def test_node_closed_on_failed_run(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        closed: list[MemoryNode] = []
        monkeypatch.setattr(MemoryNode, "close", lambda self: closed.append(self))
        path = tmp_path / "unknown.json"
        path.write_text(json.dumps({"steps": [{"action": "set_best", "block": "nope"}]}))

        result = runner.invoke(app, ["replay", str(path), "-l", "ERROR"])

        assert result.exit_code == 1
        assert len(closed) == 1
