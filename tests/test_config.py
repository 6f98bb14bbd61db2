"""
Tests for settings handling.
"""

import pytest

from nutbridge.config import DEFAULT_POLL_INTERVAL, parse_int
from tests.fakes import make_settings


@pytest.mark.parametrize(
    "value, expected",
    [
        (30, 30),
        ("45", 45),
        ("90s", 90),
        ("", DEFAULT_POLL_INTERVAL),
        ("soon", DEFAULT_POLL_INTERVAL),
        (0, DEFAULT_POLL_INTERVAL),
        ("-5", DEFAULT_POLL_INTERVAL),
    ],
)
def test_poll_interval(value, expected):
    assert make_settings(UPDATE_INTERVAL=value).poll_interval == expected


def test_poll_interval_default():
    assert make_settings().poll_interval == 60


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("NUTBRIDGE_UPS_NAME", "eaton5px")
    monkeypatch.setenv("NUTBRIDGE_UPDATE_INTERVAL", "15")
    from nutbridge.config import Settings

    settings = Settings(_env_file=None)
    assert settings.UPS_NAME == "eaton5px"
    assert settings.poll_interval == 15


def test_own_ups_name():
    assert make_settings(UPS_NAME="eaton", HOST_IP="192.168.1.5").own_ups_name == "eaton@192.168.1.5"


@pytest.mark.parametrize(
    "username, password, expected",
    [("monitor", "secret", True), ("monitor", None, False), (None, "secret", False), ("", "", False)],
)
def test_has_credentials(username, password, expected):
    assert make_settings(USERNAME=username, PASSWORD=password).has_credentials is expected


@pytest.mark.parametrize(
    "value, expected",
    [("87", 87), ("87.9", 87), (" 12 ", 12), ("+3", 3), ("abc", None), (None, None), (3.7, 3), (True, None)],
)
def test_parse_int(value, expected):
    assert parse_int(value) == expected
