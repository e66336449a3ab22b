# python
"""
tests/test_config.py
Unit tests for config layering, validation and duration parsing.
"""
import pytest

from goldmine_connect.config import SessionConfig, load_config, parse_duration
from goldmine_connect.errors import ConfigError

REQUIRED = {"host": "example.com", "port": 2513, "name": "bob", "tag": "ABC"}


def test_defaults_apply_when_only_required_given() -> None:
    config = load_config(REQUIRED, environ={})
    assert isinstance(config, SessionConfig)
    assert config.timeout == 1.0
    assert config.connect_timeout == 10.0
    assert config.door_code is None
    assert config.display_name == "bob"
    assert config.events_file is None


def test_environment_supplies_values() -> None:
    environ = {
        "GOLDMINE_HOST": "bbs.example.org",
        "GOLDMINE_PORT": "3513",
        "GOLDMINE_NAME": "alice",
        "GOLDMINE_TAG": "SJK",
        "GOLDMINE_XTRN": "MRC",
        "GOLDMINE_TIMEOUT": "250ms",
    }
    config = load_config(environ=environ)
    assert config.host == "bbs.example.org"
    assert config.port == 3513
    assert config.door_code == "MRC"
    assert config.timeout == pytest.approx(0.25)


def test_overrides_win_over_environment_and_none_is_ignored() -> None:
    environ = {"GOLDMINE_HOST": "env.example", "GOLDMINE_PORT": "1", "GOLDMINE_NAME": "env", "GOLDMINE_TAG": "ENV"}
    config = load_config({"host": "cli.example", "name": None}, environ=environ)
    assert config.host == "cli.example"
    assert config.name == "env"


def test_missing_required_fields_are_reported() -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config({"host": "example.com"}, environ={})
    message = str(excinfo.value)
    assert "port" in message
    assert "name" in message
    assert "tag" in message
    assert excinfo.value.step == "config"


@pytest.mark.parametrize("port", [0, 70000, "abc", -5])
def test_invalid_port_rejected(port) -> None:
    with pytest.raises(ConfigError):
        load_config({**REQUIRED, "port": port}, environ={})


def test_tag_with_brackets_rejected() -> None:
    with pytest.raises(ConfigError):
        load_config({**REQUIRED, "tag": "[ABC]"}, environ={})


def test_nul_in_name_rejected() -> None:
    with pytest.raises(ConfigError):
        load_config({**REQUIRED, "name": "bo\x00b"}, environ={})


def test_empty_xtrn_is_treated_as_absent() -> None:
    config = load_config({**REQUIRED, "xtrn": ""}, environ={})
    assert config.xtrn is None
    assert config.door_code is None


def test_non_positive_timeout_rejected() -> None:
    with pytest.raises(ConfigError):
        load_config({**REQUIRED, "timeout": "0s"}, environ={})


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1s", 1.0),
        ("500ms", 0.5),
        ("1m30s", 90.0),
        ("2h", 7200.0),
        ("1.5s", 1.5),
        ("250us", 0.00025),
        ("0.2", 0.2),
        (3, 3.0),
    ],
)
def test_parse_duration(text, expected) -> None:
    assert parse_duration(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "fast", "10 s", "5x", "s1", "nan", "inf", "-inf", float("nan"), float("inf")])
def test_parse_duration_rejects_garbage(text) -> None:
    with pytest.raises(ConfigError):
        parse_duration(text)


@pytest.mark.parametrize("timeout", ["nan", "inf", "NaN"])
def test_non_finite_timeout_rejected(timeout) -> None:
    with pytest.raises(ConfigError):
        load_config({**REQUIRED, "timeout": timeout}, environ={})
