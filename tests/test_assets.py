"""
Tests for the asset fallback synthesizer.
"""

import copy

import pytest

from workerharness.compiler import CompiledWorker, apply_asset_workaround, compile_descriptor
from workerharness.compiler.assets import (
    DEFAULT_MIME_TYPE,
    MIME_TYPES,
    ORIGIN_BINDING,
    ROUTER_WORKER_NAME,
    STORE_BINDING,
    STORE_WORKER_NAME,
    router_script,
    store_script,
)
from workerharness.errors import ReservedWorkerNameError


@pytest.fixture
def mixed_workers():
    """Compiled workers for a descriptor with assets, code and a service."""
    descriptor = {
        "main": "./worker.js",
        "compatibility_date": "2025-01-01",
        "compatibility_flags": ["nodejs_compat"],
        "assets": {"binding": "ASSETS", "directory": "./d"},
        "services": [{"binding": "AUTH", "service": "auth"}],
    }
    return compile_descriptor(descriptor).workers


class TestApplyAssetWorkaround:
    """Tests for apply_asset_workaround."""

    def test_inserts_router_and_store_first(self, mixed_workers):
        original_length = len(mixed_workers)
        apply_asset_workaround(mixed_workers)

        assert len(mixed_workers) == original_length + 2
        assert [w.name for w in mixed_workers] == [
            ROUTER_WORKER_NAME,
            STORE_WORKER_NAME,
            "main",
            "auth",
        ]

    def test_main_worker_loses_assets_and_gains_binding(self, mixed_workers):
        apply_asset_workaround(mixed_workers)
        main = mixed_workers[2]

        assert main.assets is None
        assert main.script_path == "./worker.js"
        assert main.service_bindings == {"AUTH": "auth", "ASSETS": STORE_WORKER_NAME}
        assert "assets" not in main.to_options()

    def test_router_wiring(self, mixed_workers):
        apply_asset_workaround(mixed_workers)
        router = mixed_workers[0]

        assert router.service_bindings == {
            STORE_BINDING: STORE_WORKER_NAME,
            ORIGIN_BINDING: "main",
        }
        assert router.script == router_script()
        assert f"env.{STORE_BINDING}.fetch" in router.script
        assert f"env.{ORIGIN_BINDING}.fetch" in router.script

    def test_store_serves_asset_directory(self, mixed_workers):
        apply_asset_workaround(mixed_workers)
        store = mixed_workers[1]

        assert store.site_path == "./d"
        assert store.script == store_script()
        assert store.to_options()["sitePath"] == "./d"
        assert store.service_bindings is None

    def test_compatibility_copied_to_synthetic_workers(self, mixed_workers):
        apply_asset_workaround(mixed_workers)

        for worker in mixed_workers[:2]:
            assert worker.compatibility_date == "2025-01-01"
            assert worker.compatibility_flags == ["nodejs_compat"]

    def test_compatibility_absent_stays_absent(self):
        workers = compile_descriptor({"assets": {"directory": "./d"}}).workers
        apply_asset_workaround(workers)

        for worker in workers[:2]:
            options = worker.to_options()
            assert "compatibilityDate" not in options
            assert "compatibilityFlags" not in options

    def test_no_binding_name_adds_no_service_binding(self):
        workers = compile_descriptor({"assets": {"directory": "./d"}}).workers
        apply_asset_workaround(workers)

        assert workers[2].service_bindings is None

    def test_second_application_is_noop(self, mixed_workers):
        apply_asset_workaround(mixed_workers)
        snapshot = copy.deepcopy([w.to_options() for w in mixed_workers])

        apply_asset_workaround(mixed_workers)

        assert [w.to_options() for w in mixed_workers] == snapshot

    def test_noop_without_assets(self):
        workers = compile_descriptor({"main": "./worker.js"}).workers
        snapshot = [w.to_options() for w in workers]

        apply_asset_workaround(workers)

        assert [w.to_options() for w in workers] == snapshot

    def test_noop_on_empty_sequence(self):
        workers: list[CompiledWorker] = []
        apply_asset_workaround(workers)
        assert workers == []

    def test_reserved_name_collision_raises(self):
        workers = compile_descriptor(
            {
                "assets": {"directory": "./d"},
                "services": [{"binding": "S", "service": STORE_WORKER_NAME}],
            }
        ).workers

        with pytest.raises(ReservedWorkerNameError) as exc_info:
            apply_asset_workaround(workers)

        assert exc_info.value.name == STORE_WORKER_NAME
        assert workers[0].assets is not None


class TestStoreScript:
    """Tests for the generated asset-store module."""

    def test_lookup_order(self):
        script = store_script()

        assert "manifest[path]" in script
        assert "${path}index.html" in script
        assert "${path}/index.html" in script

    def test_mime_table_embedded(self):
        script = store_script()

        assert "__MIME_TYPES__" not in script
        assert '"html": "text/html; charset=utf-8"' in script
        assert DEFAULT_MIME_TYPE in script

    def test_mime_table_covers_common_types(self):
        for extension in ("html", "css", "js", "json", "txt", "svg", "png", "jpg", "wasm"):
            assert extension in MIME_TYPES
