# python
"""
goldmine_connect/session.py
SessionLog dataclass and JSONL event logging for relay sessions.
"""
from dataclasses import dataclass
import asyncio
import json
import datetime
import pathlib
from typing import Optional, Any

_EVENT_LOCK = asyncio.Lock()

EVENT_VERSION = "0.2"


def iso_ts():
    """
    Return a timezone-aware UTC ISO timestamp (Z suffix) for logging.
    """
    dt = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def ensure_dir(path: pathlib.Path):
    path.mkdir(parents=True, exist_ok=True)


@dataclass
class SessionLog:
    session_id: str
    host: str
    port: int
    started_ts: str
    bytes_in: int = 0
    bytes_out: int = 0
    events_file: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.events_file)

    async def log(self, event: str, phase: str, **fields: Any) -> None:
        if not self.enabled:
            return
        rec = {
            "ts": iso_ts(),
            "session_id": self.session_id,
            "host": self.host,
            "port": self.port,
            "event": event,
            "phase": phase,
            "version": EVENT_VERSION,
            "payload": fields or {}
        }
        async with _EVENT_LOCK:
            ensure_dir(pathlib.Path(self.events_file).parent)
            with open(self.events_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def count_in(self, data: bytes) -> None:
        self.bytes_in += len(data)

    def count_out(self, data: bytes) -> None:
        self.bytes_out += len(data)
