from pathlib import Path

import pytest

from illustration_png.config.loader import build_service_config
from illustration_png.core.types import ServiceConfig


def test_defaults_without_sources():
    config = build_service_config(environ={})

    assert config == ServiceConfig()
    assert config.max_dimension == 2048
    assert config.cache_max_age == 31536000


def test_yaml_file(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text("port: 9000\nrenderer: playwright\nstatic_dir: assets\n")

    config = build_service_config(path, environ={})

    assert config.port == 9000
    assert config.renderer == "playwright"
    assert config.static_dir == Path("assets")


def test_environment_overrides_yaml(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text("port: 9000\nfetch_timeout: 2\n")

    config = build_service_config(
        path,
        environ={
            "ILLUSTRATION_PNG_PORT": "9100",
            "ILLUSTRATION_PNG_SOURCE_BASE_URL": "https://catalog.example",
        },
    )

    assert config.port == 9100
    assert config.fetch_timeout == 2.0
    assert config.source_base_url == "https://catalog.example"


def test_explicit_overrides_win_and_none_is_ignored():
    config = build_service_config(
        environ={"ILLUSTRATION_PNG_HOST": "0.0.0.0"},
        host=None,
        port=8080,
    )

    assert config.host == "0.0.0.0"
    assert config.port == 8080


def test_unknown_yaml_key_raises(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text("colour: blue\n")

    with pytest.raises(ValueError, match="Unknown config keys"):
        build_service_config(path, environ={})


def test_missing_yaml_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_service_config(tmp_path / "nope.yaml", environ={})


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "service.yaml"
    path.write_text("")

    assert build_service_config(path, environ={}) == ServiceConfig()
