"""
Wallet state: UTXO store, chain synchronization and transaction building.
"""
