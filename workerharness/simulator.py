"""
Runtime Simulator Interface.

The harness does not run workers itself. It hands the compiled options to a
simulator (for example a Miniflare bridge) through a factory, and talks to
the resulting instance through this protocol.

Registering a factory once lets tests call setup() without passing it:

    set_default_simulator_factory(MiniflareBridge)

    ctx = {}
    await setup(ctx, "wrangler.toml")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Simulator(Protocol):
    """
    Protocol for a running simulator instance.

    Implementations own whatever process or server backs the workers;
    dispose() must release it.
    """

    async def get_bindings(self, worker_name: str) -> dict[str, Any]:
        """Return the resolved binding handles of a worker."""
        ...

    async def dispose(self) -> None:
        """Shut the simulator down."""
        ...


SimulatorFactory = Callable[[dict[str, Any]], Simulator]

_default_factory: SimulatorFactory | None = None


def set_default_simulator_factory(factory: SimulatorFactory | None) -> None:
    """
    Register the factory used when setup() is not given one.

    Args:
        factory: Callable taking the options dict, or None to clear
    """
    global _default_factory
    if factory is not None and _default_factory is not None:
        logger.warning("[simulator] Replacing existing default simulator factory")
    _default_factory = factory


def get_default_simulator_factory() -> SimulatorFactory | None:
    """Return the registered default factory, if any."""
    return _default_factory
