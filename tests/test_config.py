"""
Tests for nodekeeper.yml loading and the deployment state built from it.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from nodekeeper.adapters.mock import MockConfirmer, MockPrompter, MockRunner
from nodekeeper.adapters.supervisor.systemd import SystemdSupervisor
from nodekeeper.core.config.loader import (
    ConfigError,
    NodeKeeperConfig,
    find_config_file,
    load_config,
)
from nodekeeper.core.deployment import DeploymentState


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.network == "iliad"
        assert config.bin_dir == Path("/usr/local/bin")
        assert "~" not in str(config.node_home)

    def test_explicit_file(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text(textwrap.dedent("""\
            seed_endpoint: https://rpc.example.org
            bin_dir: /opt/story/bin
            service_timeout: 120
        """))
        config = load_config(path)
        assert config.seed_endpoint == "https://rpc.example.org"
        assert config.bin_dir == Path("/opt/story/bin")
        assert config.service_timeout == 120
        assert config.http_timeout == 30

    def test_nested_under_key(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("nodekeeper:\n  network: odyssey\n")
        assert load_config(path).network == "odyssey"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("")
        assert load_config(path).network == "iliad"

    def test_explicit_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("network: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_unknown_key(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("netwrok: iliad\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_bad_timeout(self, tmp_path: Path):
        path = tmp_path / "nodekeeper.yml"
        path.write_text("http_timeout: 0\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_home_expanded(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        path = tmp_path / "nodekeeper.yml"
        path.write_text("state_dir: ~/nk-state\n")
        assert load_config(path).state_dir == tmp_path / "nk-state"


class TestFindConfigFile:
    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "nodekeeper.yml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / "nodekeeper.yml").resolve()


class TestDeploymentState:
    def test_from_config(self, tmp_path: Path):
        config = NodeKeeperConfig(
            bin_dir=tmp_path / "bin",
            unit_dir=tmp_path / "units",
            node_home=tmp_path / "home",
            service_timeout=90,
        )
        state = DeploymentState.from_config(
            config, confirmer=MockConfirmer(), prompter=MockPrompter(), runner=MockRunner(),
        )
        assert isinstance(state.supervisor, SystemdSupervisor)
        assert state.supervisor.unit_dir == tmp_path / "units"
        assert state.supervisor.timeout == 90
        assert state.config_toml == tmp_path / "home" / "config" / "config.toml"
        assert state.validator_key_file.name == "priv_validator_key.json"

    def test_peer_settings_carried(self, tmp_path: Path):
        config = NodeKeeperConfig(
            rpc_endpoint="http://10.0.0.5:26657",
            exclude_peer_ids=["deadbeef"],
        )
        state = DeploymentState.from_config(
            config, confirmer=MockConfirmer(), prompter=MockPrompter(), runner=MockRunner(),
        )
        assert state.rpc_endpoint == "http://10.0.0.5:26657"
        assert state.exclude_peer_ids == ("deadbeef",)
