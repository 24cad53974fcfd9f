"""
Compiled Configuration Schemas.

Pydantic models for the configuration handed to the runtime simulator.

Field names are snake_case in Python and serialize to the simulator's
camelCase option names via aliases:

    worker = CompiledWorker(name="main", script_path="./worker.js")
    worker.to_options()
    # {"name": "main", "modules": True, "bindings": {}, "scriptPath": "./worker.js"}

Options that were never set serialize as absent rather than null, since the
simulator treats a present-but-empty option differently from a missing one.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AssetConfig(BaseModel):
    """Static-asset binding copied from the descriptor's [assets] block."""

    binding: str | None = Field(None, description="Binding name exposed to the worker")
    directory: str | None = Field(None, description="Directory holding the asset files")


class ServiceMock(BaseModel):
    """
    Caller-supplied stand-in for a service bound by the worker under test.

    Exactly one of script (inline module source) or script_path (path to a
    module file) must be set.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    script: str | None = None
    script_path: str | None = Field(None, alias="scriptPath")

    @model_validator(mode="after")
    def check_one_source(self) -> ServiceMock:
        if (self.script is None) == (self.script_path is None):
            raise ValueError("service mock needs exactly one of 'script' or 'scriptPath'")
        return self


class CompiledWorker(BaseModel):
    """
    One simulated worker in the compiled configuration.

    A worker with neither script nor script_path is incomplete; the
    lifecycle helpers back-fill a stub before the simulator sees it.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    modules: bool = True
    bindings: dict[str, Any] = Field(default_factory=dict)

    script: str | None = None
    script_path: str | None = Field(None, alias="scriptPath")

    assets: AssetConfig | None = None
    kv_namespaces: list[str] | None = Field(None, alias="kvNamespaces")
    r2_buckets: list[str] | None = Field(None, alias="r2Buckets")
    d1_databases: dict[str, Any] | None = Field(None, alias="d1Databases")
    durable_objects: dict[str, Any] | None = Field(None, alias="durableObjects")
    queue_producers: dict[str, Any] | None = Field(None, alias="queueProducers")
    queue_consumers: dict[str, Any] | None = Field(None, alias="queueConsumers")
    service_bindings: dict[str, str] | None = Field(None, alias="serviceBindings")

    # TOML may hand back a date object for an unquoted compatibility_date
    compatibility_date: Any = Field(None, alias="compatibilityDate")
    compatibility_flags: list[str] | None = Field(None, alias="compatibilityFlags")

    # Only set on the synthetic asset-store worker
    site_path: str | None = Field(None, alias="sitePath")

    @property
    def has_script(self) -> bool:
        """Whether the worker carries an executable body."""
        return self.script is not None or self.script_path is not None

    def to_options(self) -> dict[str, Any]:
        """Serialize to the simulator's per-worker option shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CompiledConfiguration(BaseModel):
    """
    Full simulator configuration produced by the compiler.

    Worker order matters: the first worker is the entry point the simulator
    dispatches to, which is the worker under test until asset synthesis puts
    the router ahead of it.
    """

    workers: list[CompiledWorker] = Field(default_factory=list)
    host: str | None = None
    port: int | None = None

    def get_worker(self, name: str) -> CompiledWorker | None:
        """Look up a worker by name."""
        for worker in self.workers:
            if worker.name == name:
                return worker
        return None

    @property
    def worker_names(self) -> list[str]:
        return [worker.name for worker in self.workers]

    def to_options(self) -> dict[str, Any]:
        """Serialize to the simulator constructor's option shape."""
        options: dict[str, Any] = {
            "workers": [worker.to_options() for worker in self.workers],
        }
        if self.port is not None:
            options["host"] = self.host
            options["port"] = self.port
        return options
