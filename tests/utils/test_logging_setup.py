import logging

import pytest

from rainbowstego.exceptions import ConfigurationError
from rainbowstego.utils import configure_logging


def test_explicit_level_wins_over_environment(monkeypatch):
    monkeypatch.setenv("RAINBOWSTEGO_LOG_LEVEL", "ERROR")
    assert configure_logging("debug") == logging.DEBUG


def test_environment_level_is_used(monkeypatch):
    monkeypatch.setenv("RAINBOWSTEGO_LOG_LEVEL", "warning")
    assert configure_logging() == logging.WARNING


def test_unknown_level_is_rejected(monkeypatch):
    monkeypatch.delenv("RAINBOWSTEGO_LOG_LEVEL", raising=False)
    with pytest.raises(ConfigurationError):
        configure_logging("chatty")
