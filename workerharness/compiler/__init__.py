"""
Descriptor Compiler.

Turns a deployment descriptor into the configuration the runtime simulator
accepts.

Components:
    - rules: declarative descriptor -> worker mapping table
    - paths: dotted lookup for nested descriptor blocks
    - bindings: the compiler itself, including service mocks
    - assets: router/store synthesis for workers that mix assets and code
    - schemas: compiled configuration models

Flow:
    descriptor -> compile_descriptor() -> CompiledConfiguration
               -> apply_asset_workaround(config.workers)
               -> config.to_options() -> simulator
"""

from .assets import (
    ROUTER_WORKER_NAME,
    STORE_WORKER_NAME,
    apply_asset_workaround,
)
from .bindings import compile_descriptor, default_mock_script
from .paths import resolve_path
from .rules import (
    MAPPING_RULES,
    DirectRule,
    KeyedObjectRule,
    NameListRule,
)
from .schemas import (
    AssetConfig,
    CompiledConfiguration,
    CompiledWorker,
    ServiceMock,
)

__all__ = [
    "AssetConfig",
    "CompiledConfiguration",
    "CompiledWorker",
    "DirectRule",
    "KeyedObjectRule",
    "MAPPING_RULES",
    "NameListRule",
    "ROUTER_WORKER_NAME",
    "STORE_WORKER_NAME",
    "ServiceMock",
    "apply_asset_workaround",
    "compile_descriptor",
    "default_mock_script",
    "resolve_path",
]
