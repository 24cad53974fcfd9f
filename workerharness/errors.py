"""
Exceptions for worker-harness.

All errors raised by the harness derive from HarnessError so callers can
catch the whole family at once. Missing optional descriptor keys are never
errors; these cover caller mistakes and unusable input files.
"""

from __future__ import annotations

from pathlib import Path


class HarnessError(Exception):
    """Base exception for harness errors."""

    pass


# =============================================================================
# Descriptor Loading
# =============================================================================


class DescriptorError(HarnessError):
    """Raised when a descriptor file cannot be turned into a mapping."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)


class DescriptorFormatError(DescriptorError):
    """
    Raised when a descriptor file has an unrecognized extension.

    Only `.toml` and `.jsonc` descriptors are supported.
    """

    pass


class DescriptorParseError(DescriptorError):
    """Raised when a descriptor file has a syntax error."""

    pass


# =============================================================================
# Compilation
# =============================================================================


class ServiceMockError(HarnessError):
    """Raised when a service mock does not define exactly one script source."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"[{service}] {message}")


class ReservedWorkerNameError(HarnessError):
    """
    Raised when asset synthesis would reuse a worker name already present.

    The synthetic router and store workers own their names; a descriptor
    service with the same name would make service bindings ambiguous.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Worker name '{name}' is reserved for asset handling")


# =============================================================================
# Lifecycle
# =============================================================================


class SimulatorUnavailableError(HarnessError):
    """Raised when setup has no simulator factory to instantiate."""

    pass
