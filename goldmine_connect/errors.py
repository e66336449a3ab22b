# python
"""
goldmine_connect/errors.py
Exception types raised by the relay core and the config loader.
"""
from typing import Optional


class GoldmineError(Exception):
    """
    Base error. `step` names the stage that failed so callers can report it.
    """

    step = "session"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        base = super().__str__()
        if self.cause is not None:
            return f"{base}: {self.cause}"
        return base


class ConfigError(GoldmineError):
    step = "config"


class ResolutionError(GoldmineError):
    step = "resolve"


class ConnectError(GoldmineError):
    step = "connect"


class HandshakeWriteError(GoldmineError):
    step = "handshake"


class RelayWriteError(GoldmineError):
    """
    A write failed after the relay started. Never raised out of the
    orchestrator; it is attached to the SessionResult instead.
    """

    step = "relay"

    def __init__(self, direction: str, cause: Optional[BaseException] = None):
        super().__init__(f"write to {direction} failed", cause=cause)
        self.direction = direction


class LocalStreamError(GoldmineError):
    step = "stdio"
