"""
UTXO Wallet CLI - Replay node scenarios and build spends from the synced wallet.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError

from utxowallet.backends.memory import MemoryNode
from utxowallet.config import get_settings
from utxowallet.scenario import Scenario, ScenarioError, SyncSnapshot
from utxowallet.wallet.errors import WalletError
from utxowallet.wallet.service import WalletService

app = typer.Typer(
    name="utxo-wallet",
    help="UTXO wallet following a scripted node",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def format_snapshot(index: int, snapshot: SyncSnapshot) -> str:
    lines = [
        f"=== Sync #{index} ===",
        f"Tip: {snapshot.best_hash} (height {snapshot.height})",
        f"Blocks: {snapshot.undone} undone, {snapshot.applied} applied "
        f"({snapshot.queries} node queries)",
        f"Net worth: {snapshot.net_worth}",
    ]
    for owner, balance in snapshot.balances.items():
        lines.append(f"  {owner}: {balance}")
    return "\n".join(lines)


def _load_and_run(scenario_file: Path) -> tuple[WalletService, list[SyncSnapshot]]:
    if not scenario_file.exists():
        logger.error(f"Scenario file not found: {scenario_file}")
        raise typer.Exit(1)

    try:
        scenario = Scenario.from_file(scenario_file)
    except ValidationError as e:
        logger.error(f"Invalid scenario {scenario_file}: {e}")
        raise typer.Exit(1)

    node = MemoryNode()
    wallet = WalletService(scenario.owners, settings=get_settings())
    try:
        snapshots = scenario.run(node, wallet)
    except ScenarioError as e:
        logger.error(f"Scenario failed: {e}")
        raise typer.Exit(1)
    finally:
        node.close()
    return wallet, snapshots


@app.command()
def replay(
    scenario_file: Path = typer.Argument(..., help="Scenario JSON file"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Replay a scenario and print the wallet state after every sync."""
    setup_logging(log_level)

    _, snapshots = _load_and_run(scenario_file)
    if not snapshots:
        typer.echo("Scenario has no sync steps.")
        return

    for index, snapshot in enumerate(snapshots, 1):
        typer.echo(format_snapshot(index, snapshot))


@app.command()
def pay(
    scenario_file: Path = typer.Argument(..., help="Scenario JSON file"),
    destination: str = typer.Option(..., "--to", help="Destination address"),
    amount: int = typer.Option(..., "--amount", "-a", min=0, help="Amount to send"),
    tip: int = typer.Option(0, "--tip", "-t", min=0, help="Tip burned by the transaction"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Replay a scenario, then build an automatic transaction and print it as JSON."""
    setup_logging(log_level)

    wallet, _ = _load_and_run(scenario_file)
    try:
        tx = wallet.create_automatic_transaction(destination, amount, tip)
    except WalletError as e:
        logger.error(f"Cannot build transaction: {type(e).__name__}: {e}")
        raise typer.Exit(1)

    typer.echo(tx.model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
