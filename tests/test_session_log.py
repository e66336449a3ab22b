# python
"""
tests/test_session_log.py
Unit tests for the JSONL session event log.
"""
import asyncio
import json
from pathlib import Path

from goldmine_connect.session import SessionLog, iso_ts


def _make_log(events_file=None) -> SessionLog:
    return SessionLog(
        session_id="test-session",
        host="example.com",
        port=2513,
        started_ts=iso_ts(),
        events_file=events_file,
    )


def test_iso_ts_is_utc_with_z_suffix() -> None:
    assert iso_ts().endswith("Z")


def test_log_appends_jsonl_records(tmp_path: Path) -> None:
    events_file = tmp_path / "logs" / "events.jsonl"
    log = _make_log(str(events_file))
    asyncio.run(log.log("session.connect", "connect", address="127.0.0.1:2513"))
    asyncio.run(log.log("session.close", "close", reason="remote_disconnect"))

    lines = events_file.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["event"] for r in records] == ["session.connect", "session.close"]
    assert records[0]["payload"] == {"address": "127.0.0.1:2513"}
    assert records[1]["session_id"] == "test-session"
    assert records[1]["port"] == 2513


def test_log_without_events_file_writes_nothing(tmp_path: Path) -> None:
    log = _make_log()
    assert not log.enabled
    asyncio.run(log.log("session.connect", "connect"))
    assert list(tmp_path.iterdir()) == []


def test_byte_counters() -> None:
    log = _make_log()
    log.count_in(b"abc")
    log.count_out(b"hello")
    log.count_in(b"de")
    assert log.bytes_in == 5
    assert log.bytes_out == 5
