"""
Ledger constants and value arithmetic helpers.

Coin values are unsigned 64-bit integers. Totals never wrap around:
- saturating_add caps at U64_MAX
- saturating_sum folds saturating_add over an iterable
"""

from __future__ import annotations

from collections.abc import Iterable

# Largest representable coin value (u64)
U64_MAX = 2**64 - 1

# Parent id of the genesis block and coin id spent by dummy inputs
ZERO_HASH = "00" * 32


def saturating_add(a: int, b: int) -> int:
    """Add two coin values, capping the result at U64_MAX."""
    return min(a + b, U64_MAX)


def saturating_sum(values: Iterable[int]) -> int:
    total = 0
    for value in values:
        total = saturating_add(total, value)
    return total
