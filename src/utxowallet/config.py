"""
Configuration management using pydantic-settings.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="UTXO_WALLET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Which owned address receives automatic-transaction change:
    # first_owned   - first address given at wallet construction
    # largest_input - owner of the largest selected coin
    change_policy: Literal["first_owned", "largest_input"] = "first_owned"

    # Reject manual transactions whose outputs exceed their inputs
    enforce_manual_balance: bool = False


def get_settings() -> WalletSettings:
    return WalletSettings()
