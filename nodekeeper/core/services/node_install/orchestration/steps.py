"""
L5 Orchestration — step labelling.

Wraps each orchestrator step so a failure carries the name of the step
(and, for updates, the phase the service was left in) up to the operator.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from nodekeeper.core.errors import NodeKeeperError
from nodekeeper.core.services.node_install.domain.update_machine import UpdateMachine

logger = logging.getLogger(__name__)


@contextmanager
def step(name: str, machine: UpdateMachine | None = None) -> Iterator[None]:
    """Label any ``NodeKeeperError`` raised inside with ``name``."""
    logger.info("→ %s", name)
    try:
        yield
    except NodeKeeperError as e:
        if e.step is None:
            e.step = name
        if machine is not None and e.phase is None:
            e.phase = str(machine.phase)
            e.rollback_possible = machine.rollback_possible
        raise
