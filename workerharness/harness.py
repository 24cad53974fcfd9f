"""
Simulator Lifecycle Helpers.

setup() and teardown() bracket a test (or a group of tests) that needs a
running simulator. They operate on a caller-owned context mapping, so they
plug into any runner that hands a shared dict to its hooks.

After setup() the context holds:
    simulator           The simulator instance
    env                 Binding handles of the primary worker
    fetch               Async request helper (see below)
    is_server_listening True if the descriptor configured dev.port
    server_base_url     http://host:port (only when listening)
    options             The options dict the simulator was built from

teardown() disposes the simulator and removes exactly those keys, leaving
the context as it was before setup().

Usage:
    ctx = {}
    await setup(ctx, "tests/fixtures/worker/wrangler.toml", service_mocks={
        "auth-worker": {"script": "export default { fetch: () => new Response('ok') }"},
    })
    try:
        response = await ctx["fetch"]("/test")
        assert response.status_code == 200
    finally:
        await teardown(ctx)

    # Or, owning the context
    async with HarnessSession("wrangler.toml") as ctx:
        response = await ctx["fetch"]("/test")
"""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from pathlib import Path
from typing import Any

import httpx

from workerharness.compiler import apply_asset_workaround, compile_descriptor
from workerharness.compiler.bindings import ServiceMocks
from workerharness.config import HarnessSettings
from workerharness.errors import SimulatorUnavailableError
from workerharness.loaders import descriptor_base_dir, load_descriptor
from workerharness.simulator import SimulatorFactory, get_default_simulator_factory

logger = logging.getLogger(__name__)

CONTEXT_KEYS = (
    "simulator",
    "env",
    "fetch",
    "is_server_listening",
    "server_base_url",
    "options",
)

NOT_LISTENING_MESSAGE = "Fetch aborted: simulator is not configured to listen on a port."

FetchHelper = Callable[..., Awaitable[httpx.Response]]


# =============================================================================
# Setup / Teardown
# =============================================================================


async def setup(
    ctx: MutableMapping[str, Any],
    input_config: Mapping[str, Any] | str | os.PathLike[str] | None = None,
    *,
    service_mocks: ServiceMocks | None = None,
    port_offset: int = 0,
    simulator_factory: SimulatorFactory | None = None,
    settings: HarnessSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """
    Compile a descriptor, start a simulator and populate ctx.

    Args:
        ctx: Caller-owned context mapping
        input_config: Descriptor mapping, or path to a .toml/.jsonc file;
            None means an empty descriptor
        service_mocks: Mocks for bound services, keyed by service name
        port_offset: Added to dev.port, for suites sharing one descriptor
        simulator_factory: Builds the simulator from the options dict;
            defaults to the registered factory
        settings: Harness settings (environment defaults when None)
        transport: httpx transport used by ctx["fetch"]

    Raises:
        DescriptorError: If a descriptor file cannot be loaded
        SimulatorUnavailableError: If no simulator factory is available
        Exception: Anything raised while starting the simulator
    """
    settings = settings or HarnessSettings.from_env()
    factory = simulator_factory or get_default_simulator_factory()

    ctx["is_server_listening"] = False

    if factory is None:
        raise SimulatorUnavailableError(
            "No simulator factory given and no default factory registered"
        )

    base_dir: Path | None = None
    descriptor: Mapping[str, Any] = {}
    if isinstance(input_config, (str, os.PathLike)):
        descriptor = load_descriptor(input_config)
        base_dir = descriptor_base_dir(input_config)
    elif input_config is not None:
        descriptor = input_config

    config = compile_descriptor(
        descriptor, service_mocks, base_dir=base_dir, settings=settings
    )
    if config.port is not None:
        config.port += port_offset

    apply_asset_workaround(config.workers)

    main_worker = config.get_worker(settings.main_worker_name)
    if main_worker is not None and not main_worker.has_script:
        main_worker.script = settings.stub_script

    options = config.to_options()
    ctx["options"] = options

    base_url: str | None = None
    if config.port is not None:
        base_url = f"http://{config.host}:{config.port}"
        ctx["is_server_listening"] = True
        ctx["server_base_url"] = base_url

    simulator = factory(options)
    if inspect.isawaitable(simulator):
        simulator = await simulator
    ctx["simulator"] = simulator

    ctx["env"] = await simulator.get_bindings(settings.main_worker_name)
    ctx["fetch"] = _make_fetch(base_url, settings, transport)

    if base_url is not None:
        logger.info(f"[harness] Simulator server is listening on {base_url}")


async def teardown(ctx: MutableMapping[str, Any]) -> None:
    """
    Dispose the simulator and remove every key setup() may have added.

    Safe to call on a context that was never set up, was partially set up,
    or was already torn down.

    Args:
        ctx: Context previously passed to setup()
    """
    simulator = ctx.get("simulator")
    try:
        if simulator is not None:
            await simulator.dispose()
            logger.debug("[harness] Simulator disposed")
    finally:
        for key in CONTEXT_KEYS:
            ctx.pop(key, None)


def _make_fetch(
    base_url: str | None,
    settings: HarnessSettings,
    transport: httpx.AsyncBaseTransport | None,
) -> FetchHelper:
    """
    Build the context fetch helper.

    The helper accepts a full URL or a path such as "/api/thing", which is
    joined onto the server base URL.
    """

    async def fetch(url: str, *, method: str = "GET", **kwargs: Any) -> httpx.Response:
        if base_url is None:
            return httpx.Response(settings.not_listening_status, text=NOT_LISTENING_MESSAGE)

        final_url = url if url.startswith("http") else str(httpx.URL(base_url).join(url))

        async with httpx.AsyncClient(
            timeout=settings.request_timeout,
            transport=transport,
        ) as client:
            return await client.request(method, final_url, **kwargs)

    return fetch


# =============================================================================
# Session
# =============================================================================


class HarnessSession:
    """
    Async context manager owning a fresh context for one setup/teardown pair.

    Example:
        async with HarnessSession(descriptor, service_mocks=mocks) as ctx:
            kv = ctx["env"]["KV_CONFIG"]
    """

    def __init__(
        self,
        input_config: Mapping[str, Any] | str | os.PathLike[str] | None = None,
        **options: Any,
    ):
        """
        Initialize session.

        Args:
            input_config: Passed through to setup()
            **options: Keyword options for setup()
        """
        self._input_config = input_config
        self._options = options
        self.context: dict[str, Any] = {}

    async def __aenter__(self) -> dict[str, Any]:
        try:
            await setup(self.context, self._input_config, **self._options)
        except BaseException:
            await teardown(self.context)
            raise
        return self.context

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await teardown(self.context)
