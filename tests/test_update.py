"""
Tests for the in-place update orchestrator.
"""

from __future__ import annotations

import pytest

from conftest import RELEASE_API, STORY_URL

from nodekeeper.adapters.mock import MockConfirmer, MockVersionProbe, fake_binary
from nodekeeper.core.errors import (
    ConfirmationDeclined,
    DownloadFailed,
    InstallFailed,
    ReleaseNotFound,
    SupervisorTimeout,
    VersionQueryFailed,
)
from nodekeeper.core.models.service import ServiceUnit
from nodekeeper.core.services.node_install.data.components import COMPONENTS, CONSENSUS
from nodekeeper.core.services.node_install.orchestration.update import (
    describe_failure,
    update_component,
)

STORY = COMPONENTS[CONSENSUS]


@pytest.fixture
def deployed(state, supervisor):
    """story v0.10.0 installed and running."""
    fake_binary(state.bin_dir, "story", "#!/bin/sh\necho v0.10.0\n")
    supervisor.add_running(ServiceUnit(name="story", exec_start="/usr/local/bin/story run"))
    state.version_probe = MockVersionProbe({"story": "v0.10.0"})
    return state


class TestUpdateHappyPath:
    def test_replaces_binary_and_restarts(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")

        report = update_component(STORY, deployed)

        assert report.installed_version == "v0.10.0"
        assert report.latest_version == "v0.10.1"
        assert b"v0.10.1" in (deployed.bin_dir / "story").read_bytes()
        assert supervisor.is_running("story")
        assert supervisor.call_log == [("stop", "story"), ("start", "story")]
        assert report.phases == ["running", "stopped", "uninstalled", "installing", "started"]

    def test_question_shows_both_versions(self, deployed, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        update_component(STORY, deployed)
        [question] = deployed.confirmer.questions
        assert "v0.10.0" in question and "v0.10.1" in question

    def test_same_version_still_reinstalls(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.0", "story-linux-amd64", STORY_URL, "story")

        report = update_component(STORY, deployed)

        assert report.same_version
        assert network.downloads == [STORY_URL]
        assert supervisor.is_running("story")

    def test_reinstall_pinned_to_confirmed_tag(self, deployed, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        update_component(STORY, deployed)
        assert f"{RELEASE_API}/repos/piplabs/story/releases/tags/v0.10.1" in network.requests


class TestUpdateAbortsBeforeTouching:
    def test_declined(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        deployed.confirmer = MockConfirmer(answer=False)
        before = (deployed.bin_dir / "story").read_bytes()

        with pytest.raises(ConfirmationDeclined) as exc:
            update_component(STORY, deployed)

        assert not exc.value.fatal
        assert supervisor.call_log == []
        assert supervisor.is_running("story")
        assert (deployed.bin_dir / "story").read_bytes() == before
        assert network.downloads == []

    def test_resolver_failure(self, deployed, supervisor, network):
        with pytest.raises(ReleaseNotFound) as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "resolve latest release"
        assert deployed.confirmer.questions == []
        assert supervisor.call_log == []
        assert supervisor.is_running("story")
        assert (deployed.bin_dir / "story").exists()

    def test_version_probe_failure(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        deployed.version_probe = MockVersionProbe({})

        with pytest.raises(VersionQueryFailed) as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "query installed version"
        assert supervisor.call_log == []

    def test_stop_timeout(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        supervisor.set_failure("stop", "story", SupervisorTimeout("still active after 60s"))

        with pytest.raises(SupervisorTimeout) as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "stop service"
        assert exc.value.phase == "running"
        assert exc.value.rollback_possible is True
        assert (deployed.bin_dir / "story").exists()

    def test_stale_archive_refused_before_stop(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        (deployed.work_dir / "story.tar.gz").write_bytes(b"left over")
        before = (deployed.bin_dir / "story").read_bytes()

        with pytest.raises(InstallFailed, match="Stale story.tar.gz") as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "check staging area"
        assert deployed.confirmer.questions == []
        assert supervisor.call_log == []
        assert supervisor.is_running("story")
        assert (deployed.bin_dir / "story").read_bytes() == before
        assert network.downloads == []


class TestUpdateRemoveFailure:
    @pytest.fixture
    def undeletable(self, deployed, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        # A directory in place of the binary makes unlink fail
        binary = deployed.bin_dir / "story"
        binary.unlink()
        binary.mkdir()
        return deployed

    def test_service_restarted(self, undeletable, supervisor):
        with pytest.raises(InstallFailed, match="Cannot remove") as exc:
            update_component(STORY, undeletable)

        assert exc.value.step == "remove installed binary"
        assert exc.value.phase == "running"
        assert exc.value.rollback_possible is True
        assert isinstance(exc.value.__cause__, OSError)
        assert supervisor.call_log == [("stop", "story"), ("start", "story")]
        assert supervisor.is_running("story")

    def test_restart_also_fails(self, undeletable, supervisor):
        supervisor.set_failure("start", "story", SupervisorTimeout("not active after 60s"))

        with pytest.raises(InstallFailed) as exc:
            update_component(STORY, undeletable)

        message = str(exc.value)
        assert "Cannot remove" in message
        assert "restart of story also failed: not active after 60s" in message
        assert isinstance(exc.value.__cause__, OSError)
        assert exc.value.phase == "stopped"
        assert not supervisor.is_running("story")
        assert describe_failure(exc.value).endswith("The service is stopped.")


class TestUpdateAfterUninstall:
    def test_download_failure_reports_phase(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        network.files[STORY_URL] = OSError("connection reset by peer")

        with pytest.raises(DownloadFailed) as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "reinstall"
        assert exc.value.phase == "installing"
        assert exc.value.rollback_possible is False
        assert not supervisor.is_running("story")
        assert not (deployed.bin_dir / "story").exists()
        assert "no rollback is possible" in describe_failure(exc.value)

    def test_start_timeout(self, deployed, supervisor, network):
        network.publish("piplabs/story", "v0.10.1", "story-linux-amd64", STORY_URL, "story")
        supervisor.set_failure("start", "story", SupervisorTimeout("not active after 60s"))

        with pytest.raises(SupervisorTimeout) as exc:
            update_component(STORY, deployed)

        assert exc.value.step == "start service"
        assert exc.value.phase == "installing"
        # The new binary is in place; only the start is missing
        assert b"v0.10.1" in (deployed.bin_dir / "story").read_bytes()


class TestDescribeFailure:
    def test_before_stop(self):
        error = ReleaseNotFound("index unreachable", step="resolve latest release")
        assert describe_failure(error) == "resolve latest release: index unreachable"

    def test_stopped(self):
        error = SupervisorTimeout("x", step="remove installed binary")
        error.phase = "stopped"
        assert describe_failure(error).endswith("The service is stopped.")
