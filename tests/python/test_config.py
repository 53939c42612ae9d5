# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for RuntimeConfig.
"""

import pytest

from tessera.config import INPUT_MARKER, OUTPUT_MARKER, RuntimeConfig
from tessera.errors import ConfigurationError
from tessera.observability import Verbosity, get_logger


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("TESSERA_VERBOSITY", "TESSERA_LOG_JSON", "TESSERA_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestRuntimeConfig:
    def test_defaults(self):
        config = RuntimeConfig()
        assert config.input_marker == INPUT_MARKER == "pnnx.Input"
        assert config.output_marker == OUTPUT_MARKER == "pnnx.Output"
        assert config.verbosity == Verbosity.INFO
        assert not config.debug
        config.validate()

    def test_from_env(self, clean_env):
        clean_env.setenv("TESSERA_VERBOSITY", "1")
        clean_env.setenv("TESSERA_LOG_JSON", "yes")
        clean_env.setenv("TESSERA_DEBUG", "1")

        config = RuntimeConfig.from_env()

        assert config.verbosity == 1
        assert config.json_logs
        assert config.debug

    def test_from_env_defaults(self, clean_env):
        config = RuntimeConfig.from_env()
        assert config == RuntimeConfig()

    def test_bad_flag(self, clean_env):
        clean_env.setenv("TESSERA_DEBUG", "maybe")
        with pytest.raises(ConfigurationError) as exc_info:
            RuntimeConfig.from_env()
        assert exc_info.value.context["config_key"] == "TESSERA_DEBUG"

    def test_bad_verbosity(self, clean_env):
        clean_env.setenv("TESSERA_VERBOSITY", "loud")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            RuntimeConfig.from_env()

    def test_verbosity_out_of_range(self):
        with pytest.raises(ConfigurationError, match="between 0 and 4"):
            RuntimeConfig(verbosity=5).validate()

    def test_markers_must_differ(self):
        with pytest.raises(ConfigurationError, match="must differ"):
            RuntimeConfig(output_marker=INPUT_MARKER).validate()

    def test_empty_marker(self):
        with pytest.raises(ConfigurationError):
            RuntimeConfig(input_marker="").validate()

    def test_apply_logging(self):
        RuntimeConfig(verbosity=4, json_logs=True).apply_logging()
        assert get_logger().get_verbosity() == Verbosity.DEBUG
