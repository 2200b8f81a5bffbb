"""
Network presets and workflow settings.

``NETWORKS`` holds the endpoints of known deployments. ``E2ESettings`` is the
validated input of one workflow run and is usually built from the process
environment (optionally seeded from a ``.env`` file).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from storagehub_e2e.errors import ConfigurationError
from storagehub_e2e.utils.polling import PollConfig
from storagehub_e2e.utils.validation import validate_endpoint_url

__all__ = [
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "FILE_SYSTEM_PRECOMPILE_ADDRESS",
    "get_network_config",
    "E2ESettings",
]

FILE_SYSTEM_PRECOMPILE_ADDRESS = "0x0000000000000000000000000000000000000404"


class Network(str, Enum):
    TESTNET = "testnet"
    LOCAL = "local"


@dataclass(frozen=True)
class NetworkConfig:
    name: Network
    display_name: str
    chain_id: int
    rpc_url: str
    ws_url: str
    msp_url: str
    file_system_address: str = FILE_SYSTEM_PRECOMPILE_ADDRESS
    native_symbol: str = "MOCK"


NETWORKS: dict[Network, NetworkConfig] = {
    Network.TESTNET: NetworkConfig(
        name=Network.TESTNET,
        display_name="DataHaven Testnet",
        chain_id=55931,
        rpc_url="https://services.datahaven-testnet.network/testnet",
        ws_url="wss://services.datahaven-testnet.network/testnet",
        msp_url="https://deo-dh-backend.testnet.datahaven-infra.network/",
    ),
    Network.LOCAL: NetworkConfig(
        name=Network.LOCAL,
        display_name="StorageHub Local Devnet",
        chain_id=181222,
        rpc_url="http://127.0.0.1:9888",
        ws_url="ws://127.0.0.1:9888",
        msp_url="http://127.0.0.1:8080",
        native_symbol="UNIT",
    ),
}


def get_network_config(
    network: Network,
    *,
    rpc_url: Optional[str] = None,
    ws_url: Optional[str] = None,
    msp_url: Optional[str] = None,
) -> NetworkConfig:
    cfg = NETWORKS[network]
    overrides = {
        key: value
        for key, value in (("rpc_url", rpc_url), ("ws_url", ws_url), ("msp_url", msp_url))
        if value
    }
    return replace(cfg, **overrides) if overrides else cfg


# ============================================================================
# Workflow settings
# ============================================================================

# Environment variable -> settings field
ENV_VARS = {
    "PRIVATE_KEY": "private_key",
    "NETWORK": "network",
    "RPC_URL": "rpc_url",
    "WS_URL": "ws_url",
    "MSP_URL": "msp_url",
    "BUCKET_NAME": "bucket_name",
    "FILE_PATH": "file_path",
    "DOWNLOAD_PATH": "download_path",
    "VALUE_PROP_ID": "value_prop_id",
    "LOG_LEVEL": "log_level",
}


class E2ESettings(BaseModel):
    """
    Validated inputs for one end-to-end run.

    Example:
        ```python
        settings = E2ESettings.from_env()
        print(settings.network_config.msp_url)
        ```
    """

    model_config = ConfigDict(frozen=True, hide_input_in_errors=True)

    private_key: str = Field(
        ...,
        pattern=r"^(0x)?[0-9a-fA-F]{64}$",
        repr=False,
        description="Account private key. SECURITY: Store in environment variable",
    )
    network: Network = Field(
        default=Network.TESTNET,
        description="Network preset",
    )
    rpc_url: Optional[str] = Field(default=None, description="EVM JSON-RPC URL override")
    ws_url: Optional[str] = Field(default=None, description="Chain state websocket URL override")
    msp_url: Optional[str] = Field(default=None, description="MSP backend base URL override")
    bucket_name: str = Field(
        default="bucket-datahaven-e2e",
        min_length=1,
        max_length=100,
        description="Bucket name (unique per owner on the network)",
    )
    bucket_private: bool = Field(default=False, description="Create a private bucket")
    value_prop_id: Optional[str] = Field(
        default=None,
        description="Value proposition to use (defaults to the first available one)",
    )
    file_path: Path = Field(..., description="Local file to upload")
    download_path: Optional[Path] = Field(
        default=None,
        description="Where to write the downloaded copy (defaults next to file_path)",
    )
    siwe_domain: str = Field(default="localhost", description="Sign-in message domain")
    siwe_uri: str = Field(default="http://localhost", description="Sign-in message URI")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    log_level: str = Field(default="INFO", description="Log level name")

    bucket_ready_attempts: int = Field(default=10, ge=1)
    bucket_ready_interval_ms: int = Field(default=2000, ge=0)
    msp_confirm_attempts: int = Field(default=10, ge=1)
    msp_confirm_interval_ms: int = Field(default=2000, ge=0)
    file_ready_attempts: int = Field(default=144, ge=1)
    file_ready_interval_ms: int = Field(default=5000, ge=0)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("file_path")
    @classmethod
    def _existing_file(cls, value: Path) -> Path:
        if not value.is_file():
            raise ValueError("file_path must be an existing regular file")
        if not os.access(value, os.R_OK):
            raise ValueError("file_path is not readable")
        return value

    @model_validator(mode="after")
    def _valid_endpoints(self) -> "E2ESettings":
        # Raises ConfigurationError naming RPC_URL, WS_URL or MSP_URL
        self.network_config
        return self

    @property
    def network_config(self) -> NetworkConfig:
        cfg = get_network_config(
            self.network,
            rpc_url=self.rpc_url,
            ws_url=self.ws_url,
            msp_url=self.msp_url,
        )
        validate_endpoint_url(cfg.rpc_url, "RPC_URL")
        validate_endpoint_url(cfg.ws_url, "WS_URL", schemes=("ws", "wss"))
        validate_endpoint_url(cfg.msp_url, "MSP_URL")
        return cfg

    @property
    def resolved_download_path(self) -> Path:
        if self.download_path is not None:
            return self.download_path
        return self.file_path.with_name(
            f"{self.file_path.stem}_downloaded{self.file_path.suffix}"
        )

    @property
    def bucket_ready_poll(self) -> PollConfig:
        return PollConfig(self.bucket_ready_attempts, self.bucket_ready_interval_ms)

    @property
    def msp_confirm_poll(self) -> PollConfig:
        return PollConfig(self.msp_confirm_attempts, self.msp_confirm_interval_ms)

    @property
    def file_ready_poll(self) -> PollConfig:
        return PollConfig(self.file_ready_attempts, self.file_ready_interval_ms)

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        *,
        env_file: Optional[str] = None,
        **overrides: object,
    ) -> "E2ESettings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (no .env loading)
            env_file: Explicit .env path (defaults to searching for ``.env``)
            **overrides: Field values that win over the environment

        Raises:
            ConfigurationError: If a required value is missing or invalid
        """
        if env is None:
            load_dotenv(env_file)
            env = os.environ

        values: dict = {
            field: env[var] for var, field in ENV_VARS.items() if env.get(var)
        }
        values.update({key: value for key, value in overrides.items() if value is not None})

        if not values.get("private_key"):
            raise ConfigurationError("PRIVATE_KEY is not set", setting="PRIVATE_KEY")
        if not values.get("file_path"):
            raise ConfigurationError("FILE_PATH is not set", setting="FILE_PATH")

        try:
            return cls(**values)
        except ValidationError as e:
            # Field names only: values may contain the private key
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise ConfigurationError(
                f"Invalid settings: {', '.join(fields)}",
                details={"fields": fields},
            ) from None
