"""
Tests for the fresh-install orchestrator and the install menu choices.
"""

from __future__ import annotations

import pytest

from conftest import GETH_URL, STORY_URL

from nodekeeper.adapters.mock import MockPrompter
from nodekeeper.core.errors import (
    ChainInitFailed,
    InstallFailed,
    PeerQueryFailed,
    ReleaseNotFound,
)
from nodekeeper.core.services.node_install.orchestration.install import (
    fresh_install,
    install_choices,
    service_unit_for,
)
from nodekeeper.core.services.node_install.data.components import COMPONENTS, EXECUTION

CONFIG_TOML = """\
# Comma separated list of nodes to keep persistent connections to
persistent_peers = ""

# Maximum number of inbound peers
max_num_inbound_peers = 40
"""


@pytest.fixture
def published(state, network, runner):
    """Both engines published; ``story init`` writes a default config.toml."""
    network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
    network.publish("piplabs/story-geth", "v0.9.3", "geth-linux-amd64", GETH_URL, "geth")
    network.seed_peers([
        ("aaa", "1.1.1.1", "tcp://0.0.0.0:26656"),
        ("bbb", "2.2.2.2", "tcp://0.0.0.0:26656"),
    ])
    config = state.config_toml
    config.parent.mkdir(parents=True)
    config.write_text(CONFIG_TOML)
    return network


class TestFreshInstall:
    def test_end_to_end(self, state, supervisor, runner, published):
        report = fresh_install(state)

        assert (state.bin_dir / "story").is_file()
        assert (state.bin_dir / "geth").is_file()
        assert report.consensus_tag == "v0.10.1"
        assert report.execution_tag == "v0.9.3"
        assert report.moniker == "test-moniker"
        assert report.peers == "aaa@1.1.1.1:26656,bbb@2.2.2.2:26656"
        assert report.peer_count == 2
        assert report.running == {"story": True, "story-geth": True}

        assert 'persistent_peers = "aaa@1.1.1.1:26656,bbb@2.2.2.2:26656"' in state.config_toml.read_text()
        assert supervisor.call_log == [
            ("register", "story"), ("start", "story"),
            ("register", "story-geth"), ("start", "story-geth"),
        ]

    def test_chain_init_command(self, state, runner, published):
        fresh_install(state)
        init = [c for c in runner.commands if "init" in c]
        assert init == [[
            str(state.bin_dir / "story"), "init",
            "--network", "iliad", "--moniker", "test-moniker",
            "--home", str(state.node_home),
        ]]

    def test_units_point_at_installed_binaries(self, state, supervisor, published):
        fresh_install(state)
        geth_unit = supervisor.units["story-geth"]
        assert geth_unit.exec_start.startswith(str(state.bin_dir / "geth") + " --iliad")
        assert supervisor.units["story"].exec_start == (
            f"{state.bin_dir / 'story'} run --home {state.node_home}"
        )
        assert "--home" not in geth_unit.exec_start

    def test_previous_consensus_tag(self, state, network, published):
        network.publish(
            "piplabs/story", "v0.10.0", "story-linux-amd64",
            "https://binaries.test/story-public/story-linux-amd64-0.10.0-9a1b2c3.tar.gz", "story",
        )
        # publish() re-pointed latest too; put it back
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")

        report = fresh_install(state, consensus_tag="v0.10.0")

        assert report.consensus_tag == "v0.10.0"
        assert b"v0.10.0" in (state.bin_dir / "story").read_bytes()

    def test_empty_moniker(self, state, supervisor, published):
        state.prompter = MockPrompter(answer="   ")
        with pytest.raises(ChainInitFailed) as exc:
            fresh_install(state)
        assert exc.value.step == "initialise chain state"
        assert supervisor.units == {}

    def test_seed_unreachable(self, state, supervisor, published):
        del published.json["https://seed.test/net_info"]
        with pytest.raises(PeerQueryFailed) as exc:
            fresh_install(state)
        assert exc.value.step == "discover peers"
        assert supervisor.units == {}

    def test_no_peers_writes_empty_value(self, state, published):
        published.seed_peers([])
        report = fresh_install(state)
        assert report.peers == ""
        assert 'persistent_peers = ""' in state.config_toml.read_text()

    def test_config_without_peers_line(self, state, supervisor, published):
        state.config_toml.write_text('moniker = "x"\n')
        with pytest.raises(InstallFailed, match="No persistent_peers line") as exc:
            fresh_install(state)
        assert exc.value.step == "write persistent peers"
        assert state.config_toml.read_text() == 'moniker = "x"\n'
        assert supervisor.units == {}

    def test_local_node_left_out(self, state, published):
        published.seed_peers([
            ("aaa", "1.1.1.1", "tcp://0.0.0.0:26656"),
            ("self", "3.3.3.3", "tcp://0.0.0.0:26656"),
        ])
        published.json[f"{state.rpc_endpoint}/status"] = {"result": {"node_info": {"id": "self"}}}

        report = fresh_install(state)

        assert report.peers == "aaa@1.1.1.1:26656"
        assert "self@" not in state.config_toml.read_text()

    def test_configured_exclusions(self, state, published):
        state.exclude_peer_ids = ("bbb",)
        report = fresh_install(state)
        assert report.peers == "aaa@1.1.1.1:26656"


class TestInstallChoices:
    def test_latest_and_previous(self, state, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        network.tags("piplabs/story", ["v0.10.1", "v0.10.0"])
        choices = install_choices(state)
        assert (choices.latest, choices.previous) == ("v0.10.1", "v0.10.0")

    def test_single_release(self, state, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        network.tags("piplabs/story", ["v0.10.1"])
        assert install_choices(state).previous is None

    def test_latest_unreachable(self, state, network):
        with pytest.raises(ReleaseNotFound):
            install_choices(state)


class TestServiceUnitFor:
    def test_execution_unit(self, state):
        unit = service_unit_for(COMPONENTS[EXECUTION], state)
        assert unit.name == "story-geth"
        assert unit.description == "Story execution engine"
        assert "--ws.port 8546" in unit.exec_start
