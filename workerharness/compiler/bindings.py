"""
Binding Compiler.

Compiles a deployment descriptor (the parsed contents of a wrangler.toml or
wrangler.jsonc) into the configuration accepted by the runtime simulator.

The descriptor is a plain nested mapping. Only the keys listed below are
read; everything else is ignored:

    main, compatibility_date, compatibility_flags, vars, assets,
    kv_namespaces, r2_buckets, d1_databases, durable_objects.bindings,
    queues.producers, queues.consumers, services, dev.port, dev.hostname

Service bindings point at other workers. Those workers are not part of the
descriptor, so each bound service becomes an auxiliary worker built from a
caller-supplied mock, or from a default mock that answers 404 when no mock
was given.

Usage:
    config = compile_descriptor(
        {"main": "./worker.js", "services": [{"binding": "AUTH", "service": "auth"}]},
        {"auth": {"script": "export default { fetch: () => new Response('ok') }"}},
    )
    options = config.to_options()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workerharness.config import HarnessSettings
from workerharness.errors import ServiceMockError

from .paths import resolve_path
from .rules import MAPPING_RULES
from .schemas import AssetConfig, CompiledConfiguration, CompiledWorker, ServiceMock

logger = logging.getLogger(__name__)

ServiceMocks = Mapping[str, ServiceMock | Mapping[str, Any]]

DEFAULT_MOCK_TEMPLATE = """
export default {{
  fetch(request) {{
    console.log(`(worker-harness) mock for service '{service}' received a request for: ${{request.url}}`);
    return new Response("Service not implemented in test environment", {{ status: {status} }});
  }}
}}
"""


def compile_descriptor(
    descriptor: Mapping[str, Any] | None,
    service_mocks: ServiceMocks | None = None,
    *,
    base_dir: str | Path | None = None,
    settings: HarnessSettings | None = None,
) -> CompiledConfiguration:
    """
    Compile a descriptor into a simulator configuration.

    Missing optional keys are skipped. The result always has the primary
    worker first, followed by one worker per distinct bound service in
    order of first appearance.

    Args:
        descriptor: Parsed descriptor mapping (None is treated as empty)
        service_mocks: Service name -> {"script": ...} or {"scriptPath": ...}
        base_dir: Directory that relative `main`, `assets.directory` and
            mock `scriptPath` paths are resolved against; left verbatim
            when None
        settings: Harness settings (defaults when None)

    Returns:
        CompiledConfiguration

    Raises:
        ServiceMockError: If a supplied mock is malformed
    """
    descriptor = descriptor or {}
    service_mocks = service_mocks or {}
    settings = settings or HarnessSettings()

    main_worker = CompiledWorker(name=settings.main_worker_name)
    workers = [main_worker]

    # vars fully determine the plain bindings
    if descriptor.get("vars") is not None:
        main_worker.bindings = dict(descriptor["vars"])

    assets = descriptor.get("assets")
    if assets is not None:
        main_worker.assets = AssetConfig(
            binding=assets.get("binding"),
            directory=_rebase(assets.get("directory"), base_dir),
        )

    for rule in MAPPING_RULES:
        rule.apply(descriptor, main_worker)

    if main_worker.script_path is not None:
        main_worker.script_path = _rebase(main_worker.script_path, base_dir)

    services = descriptor.get("services")
    if services is not None:
        main_worker.service_bindings = {
            service["binding"]: service["service"] for service in services
        }
        workers.extend(_build_service_workers(services, service_mocks, settings, base_dir))

    config = CompiledConfiguration(workers=workers)

    port = resolve_path(descriptor, "dev.port")
    if port is not None:
        config.host = resolve_path(descriptor, "dev.hostname") or settings.default_host
        config.port = port

    logger.debug(
        f"[compiler] Compiled descriptor | workers={config.worker_names} | port={config.port}"
    )
    return config


def _build_service_workers(
    services: list[Mapping[str, Any]],
    service_mocks: ServiceMocks,
    settings: HarnessSettings,
    base_dir: str | Path | None = None,
) -> list[CompiledWorker]:
    """
    Create one worker per distinct bound service name.

    A binding to the primary worker's own name gets no auxiliary worker;
    the binding resolves to the primary worker itself.
    """
    workers: dict[str, CompiledWorker] = {}

    for service in services:
        service_name = service["service"]
        if service_name in workers:
            continue

        if service_name == settings.main_worker_name:
            logger.debug(f"[compiler] Service '{service_name}' binds the primary worker itself")
            continue

        mock = service_mocks.get(service_name)
        if mock is not None:
            logger.info(f"[compiler] Mocking service '{service_name}' with provided script")
            workers[service_name] = _worker_from_mock(service_name, mock, base_dir)
            continue

        logger.warning(
            f"[compiler] No mock provided for service '{service_name}'; applying default mock"
        )
        workers[service_name] = CompiledWorker(
            name=service_name,
            script=default_mock_script(service_name, settings.default_mock_status),
        )

    return list(workers.values())


def _worker_from_mock(
    service_name: str,
    mock: ServiceMock | Mapping[str, Any],
    base_dir: str | Path | None = None,
) -> CompiledWorker:
    if not isinstance(mock, ServiceMock):
        try:
            mock = ServiceMock.model_validate(mock)
        except ValidationError as e:
            raise ServiceMockError(service_name, f"Invalid service mock: {e}") from e

    return CompiledWorker(
        name=service_name,
        script=mock.script,
        script_path=_rebase(mock.script_path, base_dir),
    )


def default_mock_script(service_name: str, status: int = 404) -> str:
    """Script for a bound service the caller did not mock."""
    return DEFAULT_MOCK_TEMPLATE.format(service=service_name, status=status)


def _rebase(path: str | None, base_dir: str | Path | None) -> str | None:
    """Resolve a relative descriptor path against base_dir."""
    if path is None or base_dir is None:
        return path
    candidate = Path(path)
    if candidate.is_absolute():
        return path
    return str(Path(base_dir) / candidate)
