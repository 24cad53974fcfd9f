"""
Harness Settings.

Defaults used when compiling descriptors and driving the simulator.
Most callers never touch these; tests override them per call.

Environment overrides use the WORKER_HARNESS_ prefix:
    WORKER_HARNESS_DEFAULT_HOST=0.0.0.0
    WORKER_HARNESS_REQUEST_TIMEOUT=30
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

ENV_PREFIX = "WORKER_HARNESS_"

# Handler installed on a primary worker that declares no script at all, so
# binding-only configurations still start. Requests fall through to 404.
DEFAULT_STUB_SCRIPT = """
export default {
  fetch() {
    return new Response("Not found", { status: 404 });
  }
}
"""


class HarnessSettings(BaseModel):
    """
    Settings model for the compiler and lifecycle helpers.

    Attributes:
        default_host: Host used when a descriptor sets dev.port only
        main_worker_name: Name given to the worker under test
        stub_script: Script back-filled onto a primary worker without one
        default_mock_status: Status returned by unmocked service workers
        not_listening_status: Status returned by fetch when no port is set
        request_timeout: Seconds before a harness fetch gives up
    """

    default_host: str = Field("127.0.0.1", description="Default dev server host")
    main_worker_name: str = Field("main", description="Name of the primary worker")
    stub_script: str = Field(DEFAULT_STUB_SCRIPT, description="Back-fill handler script")
    default_mock_status: int = Field(404, ge=100, le=599)
    not_listening_status: int = Field(503, ge=100, le=599)
    request_timeout: float = Field(10.0, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HarnessSettings:
        """
        Build settings, applying WORKER_HARNESS_* overrides.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            HarnessSettings instance
        """
        environ = os.environ if environ is None else environ

        overrides: dict[str, str] = {}
        for name in ("default_host", "request_timeout"):
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value:
                overrides[name] = value

        return cls.model_validate(overrides)
