"""
Chain view implementations.

Available backends:
- MemoryNode: In-process block tree with a manually chosen best block

Any node client can drive the wallet by implementing ChainView.
"""

from utxowallet.backends.base import ChainView
from utxowallet.backends.memory import MemoryNode

__all__ = [
    "ChainView",
    "MemoryNode",
]
