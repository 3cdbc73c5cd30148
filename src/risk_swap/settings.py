"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    CHAIN_IDS,
    DEFAULT_ARBITRUM_RPC_URL,
    DEFAULT_BASE_RPC_URL,
    DEFAULT_MAINNET_RPC_URL,
    DEFAULT_PRICE_FEED_URL,
    DEFAULT_RISK_PCT,
    NetworkAssets,
)

load_dotenv()

SECRET_FIELDS = (
    "private_key",
    "aggregator_api_key",
    "price_feed_api_key",
    "telegram_bot_token",
)


class Network(str, Enum):
    MAINNET = "mainnet"
    BASE = "base"
    ARBITRUM = "arbitrum"


NETWORK_RPC_DEFAULTS = {
    Network.MAINNET: DEFAULT_MAINNET_RPC_URL,
    Network.BASE: DEFAULT_BASE_RPC_URL,
    Network.ARBITRUM: DEFAULT_ARBITRUM_RPC_URL,
}

NETWORK_EXPLORER_DEFAULTS = {
    Network.MAINNET: "https://etherscan.io",
    Network.BASE: "https://basescan.org",
    Network.ARBITRUM: "https://arbiscan.io",
}


class SwapSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with RISK_SWAP_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- global toggles ---
    dry_run: bool = True

    # --- chain / wallet ---
    network: Network = Network.MAINNET
    rpc_url: str | None = None
    wallet_address: str | None = None
    private_key: SecretStr | None = None
    explorer_url: str | None = None

    # --- swap aggregation API ---
    aggregator_base_url: str = "https://api.1inch.dev/swap/v6.0"
    aggregator_api_key: SecretStr | None = None
    slippage_bps: int = Field(default=100, gt=0, le=5000)
    approve_exact_amount: bool = True

    # --- price feed ---
    price_feed_url: str = DEFAULT_PRICE_FEED_URL
    price_feed_api_key: SecretStr | None = None
    volatile_coin_id: str = "ethereum"
    history_days: int = Field(default=365, gt=1)

    # --- trade pair ---
    volatile_symbol: str = "ETH"
    stable_symbol: str = "USDT"
    default_risk_pct: float = Field(
        default=DEFAULT_RISK_PCT,
        gt=0,
        le=1.0,
        description="Fraction of the source balance put at risk before volatility adjustment.",
    )

    # --- timeouts and concurrency ---
    request_timeout: float = 10.0
    confirmation_timeout: float = 180.0
    global_timeout_seconds: float | None = None
    max_concurrent_reads: int = Field(default=5, ge=1)

    # --- notifications ---
    telegram_bot_token: SecretStr | None = None
    telegram_chat_id: str | None = None

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="RISK_SWAP_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("volatile_symbol", "stable_symbol", mode="after")
    @classmethod
    def upper_symbols(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_pair(self) -> "SwapSettings":
        """Validate that the volatile and stable symbols form a registered pair."""
        if self.volatile_symbol == self.stable_symbol:
            raise ValueError("volatile_symbol and stable_symbol must differ")
        for symbol in (self.volatile_symbol, self.stable_symbol):
            if self.assets.get(symbol) is None:
                raise ValueError(
                    f"{symbol} is not registered on network {self.network.value}"
                )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("RISK_SWAP_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("risk-swap.toml")
                    user_config = Path.home() / ".config" / "risk-swap" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [risk_swap]
                body = data.get("risk_swap", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS[self.network.value]

    @property
    def rpc_url_effective(self) -> str:
        return self.rpc_url or NETWORK_RPC_DEFAULTS[self.network]

    @property
    def explorer_url_effective(self) -> str:
        return (self.explorer_url or NETWORK_EXPLORER_DEFAULTS[self.network]).rstrip(
            "/"
        )

    @property
    def private_key_required(self) -> str:
        """Get the private key, raising ValueError if not set."""
        if self.private_key is None:
            raise ValueError("private_key must be configured")
        return self.private_key.get_secret_value()

    @property
    def assets(self) -> NetworkAssets:
        """Get the asset registry for the configured network."""
        from .constants import ARBITRUM_ASSETS, BASE_ASSETS, ETH_MAINNET_ASSETS

        network_assets_map = {
            Network.MAINNET: ETH_MAINNET_ASSETS,
            Network.BASE: BASE_ASSETS,
            Network.ARBITRUM: ARBITRUM_ASSETS,
        }

        if self.network not in network_assets_map:
            raise ValueError(f"Unknown network: {self.network}")

        return network_assets_map[self.network]

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url_effective}/tx/{tx_hash}"
