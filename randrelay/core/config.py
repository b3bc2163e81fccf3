"""randrelay.core.config

Three config surfaces only, lowest precedence first:
1) `config/default.yaml` (plus `config/user.yaml` on top, if present)
2) Environment variables (`RANDRELAY_` prefix, `__` for nesting)
3) `PRIVATE_KEY` (bare, for compatibility with existing deployments; used
   only when no other surface sets the key)

Everything else is derived.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from randrelay.core.exceptions import ConfigError

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_KEY_RE = re.compile(r"^(0x)?[a-fA-F0-9]{64}$")


def _check_private_key(v: str) -> str:
    v = v.strip()
    if v and not _KEY_RE.match(v):
        # Never echo the value.
        raise ValueError("private_key must be 32-byte hex")
    return v


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class BeaconConfig(BaseModel):
    url: str = "https://api.drand.sh/public/latest"
    poll_interval_s: float = 3.0
    timeout_s: float = 10.0
    max_bytes: int = 64 * 1024

    @field_validator("poll_interval_s", "timeout_s")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v


class SequencerConfig(BaseModel):
    tick_interval_s: float = 2.0
    precommit_delay_s: int = 9
    expiry_window_s: int = 10
    reveal_startup_delay_s: float = 0.5
    secret_bytes: int = 32

    @field_validator("tick_interval_s", "expiry_window_s")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("precommit_delay_s", "reveal_startup_delay_s")
    @classmethod
    def must_not_be_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("secret_bytes")
    @classmethod
    def secret_fits_bytes32(cls, v: int) -> int:
        # Revealed as a bytes32 argument.
        if v != 32:
            raise ValueError("secret_bytes must be 32")
        return v


class ChainConfig(BaseModel):
    rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int | None = None  # None = ask the node (eth_chainId)
    beacon_oracle_address: str = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    sequencer_oracle_address: str = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
    private_key: str = ""
    gas_limit: int = 200_000
    timeout_s: float = 10.0

    @field_validator("beacon_oracle_address", "sequencer_oracle_address")
    @classmethod
    def must_be_address(cls, v: str) -> str:
        if not _ADDRESS_RE.match(v):
            raise ValueError(f"expected 20-byte hex address, got {v!r}")
        return v

    @field_validator("private_key")
    @classmethod
    def must_be_key_or_empty(cls, v: str) -> str:
        return _check_private_key(v)

    @field_validator("gas_limit")
    @classmethod
    def gas_limit_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("gas_limit must be > 0")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False
    verbose: bool = False


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    beacon: BeaconConfig = Field(default_factory=BeaconConfig)
    sequencer: SequencerConfig = Field(default_factory=SequencerConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_prefix": "RANDRELAY_", "env_nested_delimiter": "__"}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment overrides them.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @model_validator(mode="after")
    def bare_private_key_fallback(self) -> Config:
        if not self.chain.private_key:
            bare = os.getenv("PRIVATE_KEY", "").strip()
            if bare:
                self.chain = self.chain.model_copy(update={"private_key": _check_private_key(bare)})
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        # User overlay next to the defaults, if present.
        user = path.parent / "user.yaml"
        if user != path and user.exists():
            raw = _deep_merge(raw, yaml.safe_load(user.read_text()) or {})

        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")

    def require_signer(self) -> str:
        """Return the signing key or raise ConfigError."""

        if not self.chain.private_key:
            raise ConfigError("private key not set (RANDRELAY_CHAIN__PRIVATE_KEY or PRIVATE_KEY)")
        return self.chain.private_key
