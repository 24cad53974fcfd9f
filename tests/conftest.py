"""
Pytest configuration and fixtures for worker-harness tests.
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add the repository root to path for imports
# This allows `from workerharness import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "worker"


class FakeSimulator:
    """
    Stand-in for the runtime simulator.

    Records the options it was built with and exposes the primary worker's
    plain bindings plus a marker per declared binding category.
    """

    instances: list["FakeSimulator"] = []

    def __init__(self, options: dict[str, Any]):
        self.options = options
        self.disposed = 0
        FakeSimulator.instances.append(self)

    def worker(self, name: str) -> dict[str, Any]:
        for worker in self.options["workers"]:
            if worker["name"] == name:
                return worker
        raise KeyError(name)

    async def get_bindings(self, worker_name: str) -> dict[str, Any]:
        worker = self.worker(worker_name)
        bindings = dict(worker["bindings"])
        for name in worker.get("kvNamespaces", []):
            bindings[name] = f"kv:{name}"
        for name, target in worker.get("serviceBindings", {}).items():
            bindings[name] = f"service:{target}"
        return bindings

    async def dispose(self) -> None:
        self.disposed += 1


@pytest.fixture
def fake_simulator_factory():
    """Factory that builds FakeSimulator instances and remembers them."""
    FakeSimulator.instances = []
    return FakeSimulator


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the on-disk descriptor fixtures."""
    return FIXTURES_DIR


@pytest.fixture
def full_descriptor():
    """A descriptor using every supported key."""
    return {
        "main": "./worker.js",
        "compatibility_date": "2025-01-01",
        "vars": {"ENV": "production"},
        "assets": {"binding": "ASSETS", "directory": "./dist"},
        "kv_namespaces": [{"binding": "KV", "id": "kv_id"}],
        "r2_buckets": [{"binding": "R2", "bucket_name": "r2_bucket"}],
        "d1_databases": [{"binding": "DB", "database_id": "d1_id"}],
        "durable_objects": {"bindings": [{"name": "DO", "class_name": "Counter"}]},
        "services": [{"binding": "SERVICE", "service": "my-service"}],
        "dev": {"port": 9000},
    }
