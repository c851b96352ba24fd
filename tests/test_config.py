"""
Tests for configuration loading: YAML files, environment overrides,
code defaults and validation.
"""

import logging
import os
import pytest

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from curtains.core.config import CurtainConfig, setup_logging
from curtains.core.errors import CurtainConfigurationError
from curtains.core.service_config import (
    _parse_env_value,
    apply_env_overrides,
    get_config_dir,
    load_yaml_config,
    merge_configs,
)
from curtains.core.types import DeliveryMode
from curtains.engines.mock_engine import DEFAULT_TICK_INTERVAL, MockCurtainConfig


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point CONFIG_DIR at an empty temporary directory."""
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("CURTAIN_"):
            monkeypatch.delenv(key)
    return tmp_path


class TestServiceConfig:
    """Test the YAML and environment helpers."""

    def test_config_dir_from_env(self, config_dir):
        assert get_config_dir() == config_dir

    def test_relative_config_dir_is_under_project_root(self, monkeypatch):
        monkeypatch.setenv("CONFIG_DIR", "config")
        config_path = get_config_dir()

        assert config_path.is_absolute()
        assert config_path.name == "config"
        assert (config_path.parent / "curtains").is_dir()

    def test_missing_file(self, config_dir):
        assert load_yaml_config("curtain") == {}

    def test_load_file(self, config_dir):
        (config_dir / "curtain.yaml").write_text("engine: mock\nlog_level: debug\n")

        assert load_yaml_config("curtain") == {"engine": "mock", "log_level": "debug"}

    def test_invalid_yaml(self, config_dir):
        (config_dir / "curtain.yaml").write_text("engine: [unclosed\n")

        assert load_yaml_config("curtain") == {}

    def test_non_mapping_yaml(self, config_dir):
        (config_dir / "curtain.yaml").write_text("- just\n- a list\n")

        assert load_yaml_config("curtain") == {}

    def test_merge_configs(self):
        defaults = {"engine": "mock", "engines": {"mock": {"tick_interval": 0.25, "name": "a"}}}
        overrides = {"engines": {"mock": {"tick_interval": 0.1}}}

        merged = merge_configs(defaults, overrides)

        assert merged == {"engine": "mock", "engines": {"mock": {"tick_interval": 0.1, "name": "a"}}}
        assert defaults["engines"]["mock"]["tick_interval"] == 0.25

    def test_env_overrides(self, config_dir, monkeypatch):
        monkeypatch.setenv("CURTAIN_ENGINE", "mock")
        monkeypatch.setenv("CURTAIN_ENGINES__MOCK__TICK_INTERVAL", "0.05")
        original = {"engines": {"mock": {"name": "hall"}}}

        config = apply_env_overrides(original, "curtain")

        assert config == {"engine": "mock", "engines": {"mock": {"name": "hall", "tick_interval": 0.05}}}
        assert original == {"engines": {"mock": {"name": "hall"}}}

    @pytest.mark.parametrize("raw, expected", [
        ("true", True),
        ("False", False),
        ("none", None),
        ("", None),
        ("42", 42),
        ("0.25", 0.25),
        ("latest", "latest"),
    ])
    def test_parse_env_value(self, raw, expected):
        assert _parse_env_value(raw) == expected


class TestCurtainConfig:
    """Test the top-level configuration object."""

    def test_defaults(self, config_dir):
        config = CurtainConfig.load()

        assert config.engine == "mock"
        assert config.log_level == "INFO"
        assert config.engines == {}
        assert config.engine_config() == {}

    def test_load_from_file_and_env(self, config_dir, monkeypatch):
        (config_dir / "curtain.yaml").write_text(
            "engine: MOCK\n"
            "engines:\n"
            "  mock:\n"
            "    name: bedroom\n"
            "    tick_interval: 0.5\n"
        )
        monkeypatch.setenv("CURTAIN_ENGINES__MOCK__TICK_INTERVAL", "0.1")

        config = CurtainConfig.load()

        assert config.engine == "mock"
        assert config.engine_config() == {"name": "bedroom", "tick_interval": 0.1}

    def test_partial_file_keeps_defaults(self, config_dir):
        (config_dir / "curtain.yaml").write_text("log_level: warning\n")

        config = CurtainConfig.load()

        assert config.engine == "mock"
        assert config.log_level == "WARNING"
        assert config.engines == {}

    def test_dotenv_file(self, config_dir, monkeypatch):
        (config_dir / ".env").write_text("CURTAIN_LOG_LEVEL=debug\n")

        try:
            config = CurtainConfig.load()
        finally:
            os.environ.pop("CURTAIN_LOG_LEVEL", None)

        assert config.log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(CurtainConfigurationError):
            CurtainConfig(log_level="chatty")

    def test_engines_must_be_mapping(self):
        with pytest.raises(CurtainConfigurationError):
            CurtainConfig.from_dict({"engines": ["mock"]})

    def test_setup_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "curtain.log"

        setup_logging("debug", log_file=log_file)
        logging.getLogger("curtains.test").info("hello")

        assert log_file.parent.is_dir()


class TestMockCurtainConfig:
    """Test the simulated engine's settings."""

    def test_defaults(self):
        config = MockCurtainConfig()

        assert config.tick_interval == DEFAULT_TICK_INTERVAL
        assert config.initial_position == 0
        assert config.delivery_mode is DeliveryMode.PER_VALUE

    def test_from_dict(self):
        config = MockCurtainConfig.from_dict({
            "name": "kitchen",
            "tick_interval": "0.1",
            "initial_position": 100,
            "delivery_mode": "LATEST",
        })

        assert config.name == "kitchen"
        assert config.tick_interval == 0.1
        assert config.initial_position == 100
        assert config.delivery_mode is DeliveryMode.LATEST

    @pytest.mark.parametrize("settings", [
        {"tick_interval": 0},
        {"tick_interval": -1},
        {"tick_interval": "fast"},
        {"initial_position": 101},
        {"initial_position": -1},
        {"delivery_mode": "carrier-pigeon"},
        {"initial_position": 50.5},
        {"initial_position": "half"},
        {"initial_position": None},
        {"initial_position": True},
        {"initial_position": float("nan")},
    ])
    def test_invalid_settings(self, settings):
        with pytest.raises(CurtainConfigurationError):
            MockCurtainConfig.from_dict(settings)

    @pytest.mark.parametrize("raw", ["50", 50.0, 50])
    def test_initial_position_is_whole_number(self, raw):
        config = MockCurtainConfig.from_dict({"initial_position": raw})

        assert config.initial_position == 50
        assert type(config.initial_position) is int

    def test_initial_position_from_env(self, config_dir, monkeypatch):
        monkeypatch.setenv("CURTAIN_ENGINES__MOCK__INITIAL_POSITION", "half")

        with pytest.raises(CurtainConfigurationError):
            MockCurtainConfig.from_dict(CurtainConfig.load().engine_config())
