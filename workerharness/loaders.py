"""
Descriptor Loader.

Reads a deployment descriptor from disk into a plain nested mapping. The
file extension picks the parser:

    .toml   -> tomllib
    .jsonc  -> json5 (JSON with comments and trailing commas)

No validation happens here; the compiler reads only the keys it knows.

Usage:
    descriptor = load_descriptor("tests/fixtures/worker/wrangler.toml")
    config = compile_descriptor(descriptor, base_dir=descriptor_base_dir(path))
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import json5

from workerharness.errors import DescriptorFormatError, DescriptorParseError

logger = logging.getLogger(__name__)


def _parse_toml(content: str) -> dict[str, Any]:
    return tomllib.loads(content)


def _parse_jsonc(content: str) -> dict[str, Any]:
    return json5.loads(content)


PARSERS: dict[str, Callable[[str], dict[str, Any]]] = {
    ".toml": _parse_toml,
    ".jsonc": _parse_jsonc,
}


def load_descriptor(path: str | Path) -> dict[str, Any]:
    """
    Load and parse a descriptor file.

    Args:
        path: Path to a .toml or .jsonc descriptor

    Returns:
        Parsed descriptor mapping

    Raises:
        DescriptorFormatError: If the extension is not recognized
        DescriptorParseError: If the file does not parse
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    parser = PARSERS.get(path.suffix)
    if parser is None:
        raise DescriptorFormatError(
            f"'{path.suffix}' is not a valid descriptor extension", path
        )

    content = path.read_text(encoding="utf-8")

    try:
        descriptor = parser(content)
    except (tomllib.TOMLDecodeError, ValueError) as e:
        raise DescriptorParseError(f"Failed to parse descriptor: {e}", path) from e

    if not isinstance(descriptor, dict):
        raise DescriptorParseError("Descriptor must be a table/object at the top level", path)

    logger.debug(f"[loader] Loaded descriptor {path} | keys={sorted(descriptor)}")
    return descriptor


def descriptor_base_dir(path: str | Path) -> Path:
    """Directory that relative paths inside a descriptor file are relative to."""
    return Path(path).resolve().parent
