"""Tests for exposify.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from exposify.config import DEFAULT_ENDPOINT, ExposifyConfig, GeneratorOptions, load_config
from exposify.errors import ConfigurationError


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ExposifyConfig)
    assert config.root == tmp_path.resolve()
    assert config.target is None
    assert config.output is None
    assert config.endpoint is None
    assert config.marker is None
    assert config.projects == []
    assert config.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".exposify.yml"
    config_file.write_text(
        """
target: angular
output: web/src/app/api
endpoint: /api/rpc
marker: RpcService
projects: [api, auth]
exclude_paths:
  - "legacy/"
  - "*.generated.ts"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.target == "angular"
    assert config.output == tmp_path.resolve() / "web/src/app/api"
    assert config.endpoint == "/api/rpc"
    assert config.marker == "RpcService"
    assert config.projects == ["api", "auth"]
    assert config.exclude_paths == ["legacy/", "*.generated.ts"]


def test_load_config_accepts_explicit_file_path(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("target: preact\nprojects: api\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.target == "preact"
    assert config.projects == ["api"]


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".exposify.yml").write_text("\n", encoding="utf-8")
    assert load_config(tmp_path).target is None


def test_malformed_yaml_raises_configuration_error(tmp_path: Path) -> None:
    (tmp_path / ".exposify.yml").write_text("target: [angular\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(tmp_path)

    assert ".exposify.yml" in str(excinfo.value)


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".exposify.yml").write_text("- angular\n- preact\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


def test_generator_options_defaults(tmp_path: Path) -> None:
    options = GeneratorOptions(inputs=[tmp_path], output=tmp_path / "out", target="preact")

    assert options.endpoint == DEFAULT_ENDPOINT
    assert options.marker == "Expose"
    assert options.verbose is False
    assert options.exclude_paths == []


def test_required_config_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(tmp_path / "missing.yml", required=True)

    assert "missing.yml" in str(excinfo.value)
