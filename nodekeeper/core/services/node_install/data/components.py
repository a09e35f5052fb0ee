"""
L0 Data — Component catalog.

The two engines nodekeeper knows how to install and supervise.
Pure data, no I/O.
"""

from __future__ import annotations

from nodekeeper.core.models.component import Component

CONSENSUS = "consensus"
EXECUTION = "execution"

COMPONENTS: dict[str, Component] = {
    CONSENSUS: Component(
        name="story",
        repo="piplabs/story",
        artifact_pattern="story-linux-amd64",
        archive_name="story.tar.gz",
        binary_name="story",
        version_args=["version"],
        service_name="story",
        exec_args=["run"],
        takes_home=True,
        description="Story consensus engine",
    ),
    EXECUTION: Component(
        name="geth",
        repo="piplabs/story-geth",
        artifact_pattern="geth-linux-amd64",
        archive_name="story-geth.tar.gz",
        binary_name="geth",
        version_args=["version"],
        service_name="story-geth",
        exec_args=[
            "--iliad",
            "--syncmode", "full",
            "--http",
            "--http.api", "eth,net,web3,engine",
            "--http.vhosts", "*",
            "--http.addr", "0.0.0.0",
            "--http.port", "8545",
            "--ws",
            "--ws.api", "eth,web3,net,txpool",
            "--ws.addr", "0.0.0.0",
            "--ws.port", "8546",
        ],
        description="Story execution engine",
    ),
}


def get_component(role: str) -> Component:
    """Look up a component by role (``consensus``/``execution``) or name."""
    if role in COMPONENTS:
        return COMPONENTS[role]
    for component in COMPONENTS.values():
        if role in (component.name, component.service_name):
            return component
    raise KeyError(f"Unknown component: {role}")
