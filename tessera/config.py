# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Runtime configuration.

Example:
    from tessera.config import RuntimeConfig

    config = RuntimeConfig.from_env()
    config.debug = True
    graph = RuntimeGraph("model.pnnx.param", "model.pnnx.bin", config=config)
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError
from .observability import Verbosity, get_logger

INPUT_MARKER = "pnnx.Input"
OUTPUT_MARKER = "pnnx.Output"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean flag", config_key=name, config_value=raw
    )


@dataclass
class RuntimeConfig:
    """
    Configuration for graph construction and execution.

    Attributes:
        input_marker: Operator type tag of graph input nodes
        output_marker: Operator type tag of graph output nodes
        verbosity: Logger verbosity level (0-4)
        json_logs: Emit log entries as JSON lines
        debug: Time every layer during forward() and log a summary
    """

    input_marker: str = INPUT_MARKER
    output_marker: str = OUTPUT_MARKER
    verbosity: int = int(Verbosity.INFO)
    json_logs: bool = False
    debug: bool = False

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Build a config from TESSERA_* environment variables."""
        config = cls()
        raw_verbosity = os.environ.get("TESSERA_VERBOSITY")
        if raw_verbosity is not None:
            try:
                config.verbosity = int(raw_verbosity)
            except ValueError as err:
                raise ConfigurationError(
                    "TESSERA_VERBOSITY must be an integer",
                    config_key="TESSERA_VERBOSITY",
                    config_value=raw_verbosity,
                ) from err
        config.json_logs = _env_flag("TESSERA_LOG_JSON", config.json_logs)
        config.debug = _env_flag("TESSERA_DEBUG", config.debug)
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigurationError for out-of-range values."""
        if not Verbosity.SILENT <= self.verbosity <= Verbosity.DEBUG:
            raise ConfigurationError(
                "verbosity must be between 0 and 4",
                config_key="verbosity",
                config_value=str(self.verbosity),
            )
        if not self.input_marker or not self.output_marker:
            raise ConfigurationError("marker operator types must not be empty")
        if self.input_marker == self.output_marker:
            raise ConfigurationError(
                "input and output markers must differ",
                config_key="input_marker",
                config_value=self.input_marker,
            )

    def apply_logging(self) -> None:
        """Push verbosity and output format onto the global logger."""
        logger = get_logger()
        logger.set_verbosity(self.verbosity)
        logger.set_json_format(self.json_logs)
