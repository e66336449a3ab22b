# python
"""
goldmine_connect/pumps.py
Tasks that move bytes from one endpoint into the orchestrator's mailbox.

Neither pump writes anywhere or closes anything: the orchestrator is the
only writer on the connection and on local output. Each pump emits its
terminal event exactly once and then returns.
"""
import asyncio
from dataclasses import dataclass
import enum
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 4096


class EventKind(enum.Enum):
    OUTBOUND = "outbound"
    INPUT_ENDED = "input_ended"
    INBOUND = "inbound"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class PumpEvent:
    kind: EventKind
    data: bytes = b""
    error: Optional[BaseException] = None


class InputPump:
    """
    Reads local input and emits OUTBOUND chunks, then one INPUT_ENDED.

    A read error other than EOF ends the pump the same way EOF does; the
    error rides along on the INPUT_ENDED event for the orchestrator to log.
    """

    def __init__(self, reader, mailbox: asyncio.Queue, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.reader = reader
        self.mailbox = mailbox
        self.buffer_size = buffer_size

    async def run(self) -> None:
        error: Optional[BaseException] = None
        while True:
            try:
                chunk = await self.reader.read(self.buffer_size)
            except (OSError, ValueError) as exc:
                logger.error("Error reading input data: %s", exc)
                error = exc
                break
            if not chunk:
                break
            await self.mailbox.put(PumpEvent(EventKind.OUTBOUND, bytes(chunk)))
        await self.mailbox.put(PumpEvent(EventKind.INPUT_ENDED, error=error))


class ServerPump:
    """
    Reads the connection and emits INBOUND chunks, then one DISCONNECTED on
    remote close or read error.
    """

    def __init__(self, reader: asyncio.StreamReader, mailbox: asyncio.Queue, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.reader = reader
        self.mailbox = mailbox
        self.buffer_size = buffer_size

    async def run(self) -> None:
        error: Optional[BaseException] = None
        while True:
            try:
                chunk = await self.reader.read(self.buffer_size)
            except OSError as exc:
                logger.warning("Error occurred while reading from server: %s", exc)
                error = exc
                break
            if not chunk:
                logger.debug("Server closed the connection.")
                break
            await self.mailbox.put(PumpEvent(EventKind.INBOUND, bytes(chunk)))
        await self.mailbox.put(PumpEvent(EventKind.DISCONNECTED, error=error))
