import logging
import os
import sys

import pytest

from hubblecli import defaults


@pytest.fixture
def linux(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    return monkeypatch


def test_socket_path_default(monkeypatch):
    monkeypatch.delenv(defaults.SOCKET_PATH_KEY, raising=False)
    assert defaults.get_socket_path() == defaults.SOCKET_PATH


def test_socket_path_from_env(monkeypatch):
    monkeypatch.setenv(defaults.SOCKET_PATH_KEY, "unix:///tmp/other.sock")
    assert defaults.get_socket_path() == "unix:///tmp/other.sock"


def test_socket_path_empty_env_is_honoured(monkeypatch):
    monkeypatch.setenv(defaults.SOCKET_PATH_KEY, "")
    assert defaults.get_socket_path() == ""


def test_config_dir_from_xdg(linux, tmp_path):
    linux.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert defaults.config_dir() == os.path.join(str(tmp_path), "hubble")


def test_config_dir_from_home(linux, tmp_path):
    linux.setenv("HOME", str(tmp_path))
    assert defaults.config_dir() == os.path.join(str(tmp_path), ".config", "hubble")


def test_config_dir_fallback_from_home(linux, tmp_path):
    linux.setenv("HOME", str(tmp_path))
    assert defaults.config_dir_fallback() == os.path.join(str(tmp_path), ".hubble")


def test_config_file_prefers_config_dir(linux, tmp_path):
    linux.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    linux.setenv("HOME", str(tmp_path / "home"))
    assert defaults.config_file() == os.path.join(defaults.config_dir(), "config.yaml")


def test_nothing_known_gives_none(linux):
    assert defaults.config_dir() is None
    assert defaults.config_dir_fallback() is None
    assert defaults.config_file() is None


def test_init_logger_is_configured_once():
    first = defaults.init_logger(True)
    level = first.level
    second = defaults.init_logger(not (level == logging.DEBUG))
    assert second is first
    assert second.level == level
    assert len(second.handlers) == 1