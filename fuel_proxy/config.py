from __future__ import annotations

"""
Configuration loader for fuel-proxy.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Provides a typed CORS sub-config and the fixed precompile addressing used by
  every dry-run call.
- Exposes a cached `load_config()` accessor.

Environment variables (all prefixed with FUEL_PROXY_):
    RPC_URL              (str, default http://127.0.0.1:8545) execution client JSON-RPC
    RPC_TIMEOUT_S        (float, default 10)                  per RPC round-trip
    REQUEST_TIMEOUT_S    (float, default 30)                  whole dry-run deadline
    MAX_CONCURRENCY      (int, default 4)                     transactions in flight per request
    RELAYER_ADDRESS      (hex20, required)                    `from` of every simulated call
    PRECOMPILE_ADDRESS   (hex20, required)                    FuelVM precompile address
    DRY_RUN_SELECTOR     (hex4, required)                     fvm_dry_run discriminator
    CHAIN_ID             (int, default 0)
    CHAIN_NAME           (str, default "fuel-ee")
    BASE_ASSET_ID        (hex32, default zeroes)
    HOST / PORT          (default 127.0.0.1 / 4000)
    GRAPHQL_PATH         (default /v1/graphql)
    LOG_LEVEL            (default INFO)
    LOG_FORMAT           ("json" | "console", default json)
    METRICS_ENABLED      (bool, default true)

CORS:
    CORS__ALLOW_ORIGINS      (csv|json list)
    CORS__ALLOW_HEADERS      (csv|json list)
    CORS__ALLOW_METHODS      (csv|json list)
    CORS__ALLOW_CREDENTIALS  (bool, default False)

Notes
-----
- Lists accept comma-separated strings or JSON arrays.
- Hex values accept an optional 0x prefix and are normalised to lowercase 0x form.
"""

import json
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .types import PrecompileConfig, hex_to_bytes

ZERO_ASSET_ID = "0x" + "00" * 32


# ----------------------------- Helpers & Models ------------------------------ #


def _parse_list(val: Optional[str | List[str]], *, default: List[str]) -> List[str]:
    if val is None:
        return list(default)
    if isinstance(val, list):
        return val
    s = val.strip()
    if not s:
        return []
    # Try JSON first
    if s.startswith("[") and s.endswith("]"):
        try:
            parsed = json.loads(s)
            return [str(x) for x in parsed]
        except ValueError:
            pass
    # Fallback: CSV
    return [x.strip() for x in s.split(",") if x.strip()]


def _fixed_hex(value: str, size: int, what: str) -> str:
    raw = hex_to_bytes(value)
    if len(raw) != size:
        raise ValueError(f"{what} must be exactly {size} bytes, got {len(raw)}")
    return "0x" + raw.hex()


class CorsConfig(BaseModel):
    allow_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )
    allow_headers: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Request-Id"]
    )
    allow_methods: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"]
    )
    allow_credentials: bool = False

    @field_validator("allow_origins", "allow_headers", "allow_methods", mode="before")
    @classmethod
    def _coerce_list(cls, v):
        return _parse_list(v, default=[])


# --------------------------------- Settings ---------------------------------- #


class Config(BaseSettings):
    # HTTP
    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(4000, ge=0, le=65535, description="Bind port")
    graphql_path: str = Field("/v1/graphql", description="GraphQL endpoint path")

    # Execution client
    rpc_url: str = Field("http://127.0.0.1:8545", description="Execution client JSON-RPC endpoint")
    rpc_timeout_s: float = Field(10.0, gt=0, description="Timeout for a single RPC round-trip")
    request_timeout_s: float = Field(30.0, gt=0, description="Deadline for a whole dry-run batch")
    max_concurrency: int = Field(4, ge=1, description="Transactions simulated concurrently per request")

    # Precompile addressing
    relayer_address: str = Field(..., description="Sender account for simulated calls")
    precompile_address: str = Field(..., description="FuelVM precompile contract address")
    dry_run_selector: str = Field(..., description="4-byte fvm_dry_run operation discriminator")

    # Chain metadata
    chain_id: int = Field(0, ge=0, lt=2**64, description="Fuel chain id")
    chain_name: str = Field("fuel-ee", description="Human readable chain name")
    base_asset_id: str = Field(ZERO_ASSET_ID, description="Fuel base asset id (32 bytes)")

    # Ambient
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field("json", description='"json" or "console"')
    metrics_enabled: bool = True
    cors: CorsConfig = Field(default_factory=CorsConfig)

    model_config = SettingsConfigDict(
        env_prefix="FUEL_PROXY_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("relayer_address", "precompile_address")
    @classmethod
    def _address(cls, v: str, info) -> str:
        return _fixed_hex(v, 20, info.field_name)

    @field_validator("dry_run_selector")
    @classmethod
    def _selector(cls, v: str) -> str:
        return _fixed_hex(v, 4, "dry_run_selector")

    @field_validator("base_asset_id")
    @classmethod
    def _asset_id(cls, v: str) -> str:
        return _fixed_hex(v, 32, "base_asset_id")

    @field_validator("log_level")
    @classmethod
    def _level(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("log_format")
    @classmethod
    def _format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "console"):
            raise ValueError('log_format must be "json" or "console"')
        return v

    @field_validator("graphql_path")
    @classmethod
    def _path(cls, v: str) -> str:
        return v if v.startswith("/") else "/" + v

    # Helper builders --------------------------------------------------------

    def precompile(self) -> PrecompileConfig:
        """Fixed addressing consumed by the call builder."""
        return PrecompileConfig(
            relayer_address=self.relayer_address,
            precompile_address=self.precompile_address,
            selector=hex_to_bytes(self.dry_run_selector),
            chain_id=self.chain_id,
        )


# ------------------------------- Accessor API -------------------------------- #


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Return the cached process-wide configuration (reads env and `.env`)."""
    return Config()  # type: ignore[call-arg]


__all__ = [
    "Config",
    "CorsConfig",
    "ZERO_ASSET_ID",
    "load_config",
]
