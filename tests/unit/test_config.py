from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from randrelay.core.config import Config, SequencerConfig
from randrelay.core.exceptions import ConfigError
from tests.unit._fakes import ANVIL_KEY

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_defaults_match_relay_timing() -> None:
    cfg = Config()
    assert cfg.beacon.poll_interval_s == 3.0
    assert cfg.sequencer.tick_interval_s == 2.0
    assert cfg.sequencer.precommit_delay_s == 9
    assert cfg.sequencer.expiry_window_s == 10
    assert cfg.sequencer.reveal_startup_delay_s == 0.5
    assert cfg.logging.verbose is False


def test_repo_default_yaml_loads() -> None:
    cfg = Config.from_repo_defaults(REPO_ROOT)
    assert cfg.chain.rpc_url == "http://127.0.0.1:8545"
    assert cfg.beacon.url.startswith("https://")


def test_from_yaml_with_user_overlay(tmp_path: Path) -> None:
    (tmp_path / "default.yaml").write_text("sequencer:\n  precommit_delay_s: 9\n  expiry_window_s: 10\n")
    (tmp_path / "user.yaml").write_text("sequencer:\n  precommit_delay_s: 20\n")

    cfg = Config.from_yaml(tmp_path / "default.yaml")
    assert cfg.sequencer.precommit_delay_s == 20
    assert cfg.sequencer.expiry_window_s == 10


def test_from_yaml_raises_if_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        Config.from_yaml(tmp_path / "missing.yaml")


def test_from_yaml_rejects_non_mapping(tmp_path: Path) -> None:
    p = tmp_path / "default.yaml"
    p.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        Config.from_yaml(p)


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RANDRELAY_SEQUENCER__PRECOMMIT_DELAY_S", "15")
    monkeypatch.setenv("RANDRELAY_LOGGING__VERBOSE", "true")
    cfg = Config()
    assert cfg.sequencer.precommit_delay_s == 15
    assert cfg.logging.verbose is True


def test_bare_private_key_env_is_honoured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVATE_KEY", ANVIL_KEY.removeprefix("0x"))
    assert Config().require_signer() == ANVIL_KEY.removeprefix("0x")


def test_missing_private_key_is_config_error() -> None:
    with pytest.raises(ConfigError):
        Config().require_signer()


def test_malformed_private_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RANDRELAY_CHAIN__PRIVATE_KEY", "0xnotakey")
    with pytest.raises(ValidationError):
        Config()


@pytest.mark.parametrize(
    "field,value",
    [("tick_interval_s", 0), ("expiry_window_s", 0), ("precommit_delay_s", -1), ("secret_bytes", 16)],
)
def test_sequencer_validation(field: str, value: int) -> None:
    with pytest.raises(ValidationError):
        SequencerConfig(**{field: value})


def test_oracle_address_must_be_hex() -> None:
    with pytest.raises(ValidationError):
        Config(chain={"beacon_oracle_address": "0x1234"})


def test_env_overrides_values_from_yaml(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RANDRELAY_CHAIN__RPC_URL", "http://node.example:8545")
    monkeypatch.setenv("RANDRELAY_SEQUENCER__PRECOMMIT_DELAY_S", "15")

    cfg = Config.from_repo_defaults(REPO_ROOT)
    assert cfg.chain.rpc_url == "http://node.example:8545"
    assert cfg.sequencer.precommit_delay_s == 15
    # Siblings keep their file values.
    assert cfg.sequencer.expiry_window_s == 10
    assert cfg.chain.beacon_oracle_address == "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def test_env_overrides_user_overlay(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "default.yaml").write_text("sequencer:\n  precommit_delay_s: 9\n")
    (tmp_path / "user.yaml").write_text("sequencer:\n  precommit_delay_s: 20\n")
    monkeypatch.setenv("RANDRELAY_SEQUENCER__PRECOMMIT_DELAY_S", "30")

    assert Config.from_yaml(tmp_path / "default.yaml").sequencer.precommit_delay_s == 30
