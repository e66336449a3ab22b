# python
"""
tests/test_handshake.py
Unit tests for the rlogin handshake payload.
"""
from goldmine_connect.config import SessionConfig
from goldmine_connect.handshake import encode


def _config(**kwargs) -> SessionConfig:
    fields = {"host": "example.com", "port": 2513, "name": "bob", "tag": "ABC"}
    fields.update(kwargs)
    return SessionConfig(**fields)


def test_handshake_without_door_code_keeps_empty_terminal_field() -> None:
    assert encode(_config(xtrn="")) == b"\x00bob\x00[ABC]bob\x00\x00"


def test_handshake_with_door_code() -> None:
    payload = encode(_config(xtrn="MRC"))
    assert payload == b"\x00bob\x00[ABC]bob\x00xtrn=MRC\x00"
    assert payload.endswith(b"\x00xtrn=MRC\x00")


def test_absent_and_empty_door_code_encode_identically() -> None:
    assert encode(_config(xtrn=None)) == encode(_config(xtrn=""))
    assert b"xtrn=" not in encode(_config(xtrn=None))


def test_distinct_local_name_goes_in_first_field() -> None:
    payload = encode(_config(local_name="Sysop Bob", name="bob_remote"))
    assert payload == b"\x00Sysop Bob\x00[ABC]bob_remote\x00\x00"


def test_encoding_is_deterministic_and_nul_terminated() -> None:
    config = _config(xtrn="LORD")
    first = encode(config)
    assert first == encode(config)
    assert first.endswith(b"\x00")
    assert first.startswith(b"\x00")


def test_non_ascii_fields_are_utf8() -> None:
    payload = encode(_config(name="zoë"))
    assert "[ABC]zoë".encode("utf-8") in payload
