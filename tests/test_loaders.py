"""
Tests for descriptor loading.
"""

import pytest

from workerharness.errors import DescriptorFormatError, DescriptorParseError
from workerharness.loaders import descriptor_base_dir, load_descriptor


class TestLoadDescriptor:
    """Tests for load_descriptor."""

    def test_toml_and_jsonc_identical(self, fixtures_dir):
        toml_config = load_descriptor(fixtures_dir / "wrangler.toml")
        jsonc_config = load_descriptor(fixtures_dir / "wrangler.jsonc")

        assert toml_config == jsonc_config

    def test_static_toml_and_jsonc_identical(self, fixtures_dir):
        assert load_descriptor(fixtures_dir / "wrangler_static.toml") == load_descriptor(
            fixtures_dir / "wrangler_static.jsonc"
        )

    def test_toml_contents(self, fixtures_dir):
        descriptor = load_descriptor(str(fixtures_dir / "wrangler.toml"))

        assert descriptor["main"] == "worker.js"
        assert descriptor["vars"] == {"API_VERSION": "v1.0.0", "ENVIRONMENT": "testing"}
        assert descriptor["durable_objects"]["bindings"][0]["class_name"] == "Counter"
        assert descriptor["dev"]["port"] == 8787

    def test_unknown_extension(self, fixtures_dir):
        with pytest.raises(DescriptorFormatError) as exc_info:
            load_descriptor(fixtures_dir / "wrangler.yaml")

        assert "'.yaml'" in str(exc_info.value)
        assert exc_info.value.path.name == "wrangler.yaml"

    def test_unknown_extension_checked_before_reading(self, tmp_path):
        with pytest.raises(DescriptorFormatError):
            load_descriptor(tmp_path / "missing.json")

    def test_parse_error(self, fixtures_dir):
        with pytest.raises(DescriptorParseError) as exc_info:
            load_descriptor(fixtures_dir / "wrangler_broken.toml")

        assert exc_info.value.__cause__ is not None

    def test_jsonc_parse_error(self, tmp_path):
        path = tmp_path / "wrangler.jsonc"
        path.write_text('{ "main": ')

        with pytest.raises(DescriptorParseError):
            load_descriptor(path)

    def test_jsonc_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "wrangler.jsonc"
        path.write_text("[1, 2, 3]")

        with pytest.raises(DescriptorParseError):
            load_descriptor(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_descriptor(tmp_path / "wrangler.toml")

    def test_descriptor_base_dir(self, fixtures_dir):
        assert descriptor_base_dir(fixtures_dir / "wrangler.toml") == fixtures_dir.resolve()
