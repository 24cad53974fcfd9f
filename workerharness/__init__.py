"""
worker-harness: run edge-worker deployment descriptors under a local simulator.

The harness compiles a wrangler-style deployment descriptor into the
configuration a local runtime simulator accepts, then manages the
simulator's lifecycle for integration tests.

Design Principle:
    "Describe once, test locally."

    1. Descriptor is loaded from .toml/.jsonc (or given as a mapping)
    2. Compiler maps bindings onto simulator options
    3. Bound services get mock workers
    4. Asset + code workers get a router/store pair in front
    5. Simulator starts; bindings and a fetch helper land on the context

Usage:
    from workerharness import setup, teardown

    ctx = {}
    await setup(ctx, "wrangler.toml", simulator_factory=MiniflareBridge)
    response = await ctx["fetch"]("/test")
    await teardown(ctx)
"""

from .compiler import (
    CompiledConfiguration,
    CompiledWorker,
    ServiceMock,
    apply_asset_workaround,
    compile_descriptor,
    resolve_path,
)
from .config import HarnessSettings
from .errors import (
    DescriptorError,
    DescriptorFormatError,
    DescriptorParseError,
    HarnessError,
    ReservedWorkerNameError,
    ServiceMockError,
    SimulatorUnavailableError,
)
from .harness import HarnessSession, setup, teardown
from .loaders import load_descriptor
from .simulator import Simulator, SimulatorFactory, set_default_simulator_factory

__version__ = "0.1.0"

__all__ = [
    "CompiledConfiguration",
    "CompiledWorker",
    "DescriptorError",
    "DescriptorFormatError",
    "DescriptorParseError",
    "HarnessError",
    "HarnessSession",
    "HarnessSettings",
    "ReservedWorkerNameError",
    "ServiceMock",
    "ServiceMockError",
    "Simulator",
    "SimulatorFactory",
    "SimulatorUnavailableError",
    "apply_asset_workaround",
    "compile_descriptor",
    "load_descriptor",
    "resolve_path",
    "set_default_simulator_factory",
    "setup",
    "teardown",
]
