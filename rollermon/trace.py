"""Logging set-up for the monitors."""

from __future__ import annotations

import logging

from rollermon.errors import ParseLevelError

TRACE = 5
OFF = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "off": OFF,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_ROLLER_MONITOR_LOGGERS = (
    "rollermon.roller_monitor",
    "rollermon.alert",
    "rollermon.config",
    "rollermon.scheduler",
)
_MONITOR_ROLLUP_LOGGERS = (
    "rollermon.rollup_monitor",
    "rollermon.config",
    "rollermon.scheduler",
)


def parse_level(name: str) -> int:
    """Turn a level name (off, error, warn, info, debug, trace) into a logging level."""
    try:
        return _LEVELS[name.lower()]
    except KeyError:
        raise ParseLevelError() from None


def _init(config, logger_names) -> None:
    level = parse_level(config.logging_level)
    extern_level = parse_level(config.extern_logging_level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(extern_level)
    for name in logger_names:
        logging.getLogger(name).setLevel(level)


def roller_monitor_trace_init(config) -> None:
    """Configure logging for the roller monitor."""
    _init(config, _ROLLER_MONITOR_LOGGERS)


def monitor_rollup_trace_init(config) -> None:
    """Configure logging for the rollup monitor."""
    _init(config, _MONITOR_ROLLUP_LOGGERS)