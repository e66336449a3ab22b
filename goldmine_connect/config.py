# python
"""
goldmine_connect/config.py
SessionConfig and the loader that layers defaults, GOLDMINE_* environment
variables and explicit overrides, then validates the result with jsonschema.
"""
from dataclasses import dataclass
import logging
import math
import os
import re
from typing import Any, Dict, Mapping, Optional

import jsonschema

from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "GOLDMINE_"

DEFAULT_CONFIG: Dict[str, Any] = {
    "local_name": None,
    "xtrn": None,
    "timeout": 1.0,
    "connect_timeout": 10.0,
    "events_file": None,
}

# config key -> environment variable suffix
ENV_FIELDS = {
    "host": "HOST",
    "port": "PORT",
    "name": "NAME",
    "tag": "TAG",
    "xtrn": "XTRN",
    "local_name": "LOCAL_NAME",
    "timeout": "TIMEOUT",
    "connect_timeout": "CONNECT_TIMEOUT",
    "events_file": "EVENTS_FILE",
}

_NO_NUL = "^[^\\x00]+$"

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "goldmine-connect.config.schema.json",
    "type": "object",
    "properties": {
        "host": {"type": "string", "pattern": _NO_NUL},
        "port": {"type": "integer", "minimum": 1, "maximum": 65535},
        "name": {"type": "string", "pattern": _NO_NUL},
        "tag": {"type": "string", "pattern": "^[^\\x00\\[\\]]+$"},
        "xtrn": {"type": ["string", "null"], "pattern": "^[^\\x00]*$"},
        "local_name": {"type": ["string", "null"], "pattern": "^[^\\x00]*$"},
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "connect_timeout": {"type": "number", "exclusiveMinimum": 0},
        "events_file": {"type": ["string", "null"]},
    },
    "required": ["host", "port", "name", "tag"],
    "additionalProperties": False,
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


@dataclass(frozen=True)
class SessionConfig:
    """
    Read-only settings for one relay session.

    `name` is the remote username; `local_name` is the local display name
    sent in the first handshake field and falls back to `name`. An empty
    `xtrn` is treated the same as an absent one.
    """

    host: str
    port: int
    name: str
    tag: str
    local_name: Optional[str] = None
    xtrn: Optional[str] = None
    timeout: float = 1.0
    connect_timeout: float = 10.0
    events_file: Optional[str] = None

    @property
    def remote_username(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.local_name or self.name

    @property
    def door_code(self) -> Optional[str]:
        return self.xtrn or None


def _finite(seconds: float, original: Any) -> float:
    if not math.isfinite(seconds):
        raise ConfigError(f"invalid duration {original!r}")
    return seconds


def parse_duration(value: Any) -> float:
    """
    Convert a duration to seconds. Accepts numbers, numeric strings (seconds)
    and Go-style strings such as "500ms", "1s" or "1m30s".
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return _finite(float(value), value)
    text = str(value).strip()
    if not text:
        raise ConfigError("invalid duration ''")
    try:
        return _finite(float(text), text)
    except ValueError:
        pass
    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ConfigError(f"invalid duration {text!r}")
    return _finite(total, text)


def _from_environ(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, suffix in ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        values[key] = raw
    return values


def _coerce(data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    port = out.get("port")
    if isinstance(port, str):
        try:
            out["port"] = int(port.strip())
        except ValueError:
            raise ConfigError(f"invalid port {port!r}") from None
    for key in ("timeout", "connect_timeout"):
        if key in out and out[key] is not None:
            out[key] = parse_duration(out[key])
    if out.get("xtrn") == "":
        out["xtrn"] = None
    return out


def validate_config(data: Mapping[str, Any]) -> None:
    """
    Raise ConfigError describing every schema violation in `data`.
    """
    validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(dict(data)), key=lambda e: list(e.path))
    if not errors:
        return
    problems = []
    for err in errors:
        where = ".".join(str(p) for p in err.path) or "config"
        problems.append(f"{where}: {err.message}")
    raise ConfigError("invalid configuration (" + "; ".join(problems) + ")")


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SessionConfig:
    """
    Build a SessionConfig from DEFAULT_CONFIG, GOLDMINE_* variables and
    `overrides` (later layers win; None values in overrides are ignored).
    """
    env = os.environ if environ is None else environ
    merged: Dict[str, Any] = dict(DEFAULT_CONFIG)
    merged.update(_from_environ(env))
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value
    merged = _coerce(merged)
    # drop unset keys so "required" reports them instead of a type error
    merged = {k: v for k, v in merged.items() if v is not None or k in DEFAULT_CONFIG}
    validate_config(merged)
    logger.debug("Loaded config for %s:%s as %s", merged["host"], merged["port"], merged["name"])
    return SessionConfig(**merged)
