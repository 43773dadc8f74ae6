"""Default settings, configuration paths and logger setup."""

from __future__ import annotations

import logging
import os
import sys
import threading
from datetime import datetime

from hubblecli.timeutil import RFC3339, format_time

SERVER_ADDRESS = "localhost:4245"
DIAL_TIMEOUT = 5.0
REQUEST_TIMEOUT = 12.0
FLOW_PRINT_COUNT = 20
EVENTS_PRINT_COUNT = 20
TARGET_TLS_PREFIX = "tls://"
SOCKET_PATH_KEY = "HUBBLE_DEFAULT_SOCKET_PATH"
SOCKET_PATH = "unix:///var/run/cilium/hubble.sock"

LOGGER_NAME = "hubblecli"

_logger_lock = threading.Lock()
_logger_ready = False


def _user_home_dir() -> str | None:
    if sys.platform.startswith("win"):
        return os.environ.get("USERPROFILE") or None
    if sys.platform.startswith("plan9"):
        return os.environ.get("home") or None
    return os.environ.get("HOME") or None


def _user_config_dir() -> str | None:
    if sys.platform.startswith("win"):
        return os.environ.get("AppData") or None
    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        return os.path.join(home, "Library", "Application Support") if home else None
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return xdg
    home = os.environ.get("HOME")
    return os.path.join(home, ".config") if home else None


def config_dir() -> str | None:
    """Directory for configuration files under the user config dir, if known."""
    base = _user_config_dir()
    return os.path.join(base, "hubble") if base else None


def config_dir_fallback() -> str | None:
    """Configuration directory under the home directory, if known."""
    home = _user_home_dir()
    return os.path.join(home, ".hubble") if home else None


def config_file() -> str | None:
    """Path of the optional configuration file, if any directory is known."""
    directory = config_dir() or config_dir_fallback()
    return os.path.join(directory, "config.yaml") if directory else None


def get_socket_path() -> str:
    """Default server for the status and observe commands."""
    return os.environ.get(SOCKET_PATH_KEY, SOCKET_PATH)


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created).astimezone()
        message = record.getMessage().replace('"', '\\"')
        line = (
            f'time="{format_time(moment, RFC3339)}" '
            f"level={record.levelname.lower()} "
            f'msg="{message}"'
        )
        fields = getattr(record, "fields", None)
        if fields:
            line += "".join(f' {key}="{value}"' for key, value in fields.items())
        return line


def init_logger(debug: bool) -> logging.Logger:
    """Configure the package logger once; later calls return it unchanged."""
    global _logger_ready
    logger = logging.getLogger(LOGGER_NAME)
    with _logger_lock:
        if not _logger_ready:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(_TextFormatter())
            logger.addHandler(handler)
            logger.setLevel(logging.DEBUG if debug else logging.INFO)
            logger.propagate = False
            _logger_ready = True
    return logger