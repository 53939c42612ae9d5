# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tessera Observability Module

Components:
- TesseraLogger: Structured logging with text and JSON output
"""

from .logger import (
    Verbosity,
    LogEntry,
    TesseraLogger,
    get_logger,
    set_verbosity,
)

__all__ = [
    "Verbosity",
    "LogEntry",
    "TesseraLogger",
    "get_logger",
    "set_verbosity",
]
