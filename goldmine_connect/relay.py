# python
"""
goldmine_connect/relay.py
RelayOrchestrator: owns the connection, sends the handshake, runs both pumps
and decides when the session ends.

State machine:

    ACTIVE --input ended--> DRAINING_AFTER_EOF --quiet for `timeout`--> CLOSED
    ACTIVE | DRAINING_AFTER_EOF --server disconnected--> CLOSED
    ACTIVE | DRAINING_AFTER_EOF --write failed--> CLOSED

In DRAINING_AFTER_EOF every wait on the mailbox is bounded by the inactivity
timeout, so each inbound chunk restarts the window.
"""
import asyncio
from dataclasses import dataclass
import enum
import logging
import uuid
from typing import Awaitable, Callable, List, Optional, Tuple

from . import handshake
from .config import SessionConfig
from .errors import (
    ConnectError,
    GoldmineError,
    HandshakeWriteError,
    RelayWriteError,
)
from .pumps import EventKind, InputPump, PumpEvent, ServerPump
from .resolver import Destination, resolve
from .session import SessionLog, iso_ts

logger = logging.getLogger(__name__)

MAILBOX_SIZE = 1


class SessionState(enum.Enum):
    ACTIVE = "active"
    DRAINING_AFTER_EOF = "draining_after_eof"
    CLOSED = "closed"


class CloseReason(enum.Enum):
    REMOTE_DISCONNECT = "remote closed"
    INACTIVITY_TIMEOUT = "timed out waiting for trailing response"
    WRITE_ERROR = "write error"


@dataclass
class SessionResult:
    reason: CloseReason
    error: Optional[RelayWriteError] = None
    bytes_in: int = 0
    bytes_out: int = 0
    duration: float = 0.0


OpenConnection = Callable[..., Awaitable[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]]


def _peer_gone(reader: asyncio.StreamReader, exc: BaseException) -> bool:
    """
    True when a failed socket write means the server already went away.
    """
    if isinstance(exc, (ConnectionResetError, BrokenPipeError)):
        return True
    return reader.at_eof() or reader.exception() is not None


class RelayOrchestrator:
    """
    Run one relay session between `local_input` (anything with an async
    `read(n)`) and `local_output` (anything with `write()` and an async
    `drain()`, e.g. an asyncio.StreamWriter) and the configured server.

    `run()` raises ResolutionError, ConnectError or HandshakeWriteError if the
    session cannot start. Once relaying it always returns a SessionResult.
    """

    def __init__(
        self,
        config: SessionConfig,
        local_input,
        local_output,
        *,
        open_connection: OpenConnection = asyncio.open_connection,
        resolver: Callable[[str, int], Awaitable[Destination]] = resolve,
        session_id: Optional[str] = None,
    ):
        self.config = config
        self.local_input = local_input
        self.local_output = local_output
        self._open_connection = open_connection
        self._resolve = resolver
        self.state: Optional[SessionState] = None
        self.reason: Optional[CloseReason] = None
        self.destination: Optional[Destination] = None
        self.events = SessionLog(
            session_id=session_id or str(uuid.uuid4()),
            host=config.host,
            port=config.port,
            started_ts=iso_ts(),
            events_file=config.events_file,
        )
        self._writer: Optional[asyncio.StreamWriter] = None
        self._tasks: List[asyncio.Task] = []
        self._closed = False
        self._error: Optional[RelayWriteError] = None

    async def run(self) -> SessionResult:
        if self.state is not None or self._closed:
            raise RuntimeError("session already started")
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            reader, writer = await self._establish()
        except GoldmineError as exc:
            await self.events.log("session.error", exc.step, error=str(exc))
            await self.close()
            raise

        try:
            await self._relay(reader, writer)
        finally:
            await self.close()

        result = SessionResult(
            reason=self.reason,
            error=self._error,
            bytes_in=self.events.bytes_in,
            bytes_out=self.events.bytes_out,
            duration=loop.time() - started,
        )
        await self.events.log(
            "session.close",
            "close",
            reason=result.reason.name.lower(),
            duration_ms=int(result.duration * 1000),
            bytes_in=result.bytes_in,
            bytes_out=result.bytes_out,
        )
        return result

    async def _establish(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        self.destination = await self._resolve(self.config.host, self.config.port)
        await self.events.log("session.resolve", "connect", address=str(self.destination))

        dest = self.destination
        try:
            reader, writer = await asyncio.wait_for(
                self._open_connection(dest.address, dest.port, family=dest.family),
                timeout=self.config.connect_timeout,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            raise ConnectError(f'error occurred while connecting to address "{dest}"', cause=exc) from exc
        self._writer = writer
        logger.info("Connected to %s", dest)
        await self.events.log("session.connect", "connect", address=str(dest))

        payload = handshake.encode(self.config)
        try:
            writer.write(payload)
            await writer.drain()
        except OSError as exc:
            raise HandshakeWriteError("failed to send rlogin handshake", cause=exc) from exc
        await self.events.log(
            "handshake.sent",
            "handshake",
            bytes=len(payload),
            tag=self.config.tag,
            xtrn=self.config.door_code,
        )
        return reader, writer

    async def _relay(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        mailbox: asyncio.Queue = asyncio.Queue(maxsize=MAILBOX_SIZE)
        self._tasks = [
            asyncio.create_task(InputPump(self.local_input, mailbox).run()),
            asyncio.create_task(ServerPump(reader, mailbox).run()),
        ]
        self.state = SessionState.ACTIVE
        while self.state is not SessionState.CLOSED:
            event = await self._next_event(mailbox)
            if event is None:
                logger.info("Connection timeout: no response within %ss after input ended.", self.config.timeout)
                self._finish(CloseReason.INACTIVITY_TIMEOUT)
            elif event.kind is EventKind.OUTBOUND:
                await self._write_remote(reader, writer, event.data)
            elif event.kind is EventKind.INBOUND:
                await self._write_local(event.data)
            elif event.kind is EventKind.INPUT_ENDED:
                await self._input_ended(event)
            elif event.kind is EventKind.DISCONNECTED:
                if event.error is not None:
                    logger.info("Server connection failed (%s). Exiting.", event.error)
                else:
                    logger.info("Server disconnected. Exiting.")
                self._finish(CloseReason.REMOTE_DISCONNECT)

    async def _next_event(self, mailbox: asyncio.Queue) -> Optional[PumpEvent]:
        if self.state is not SessionState.DRAINING_AFTER_EOF:
            return await mailbox.get()
        try:
            return await asyncio.wait_for(mailbox.get(), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            return None

    async def _write_remote(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, data: bytes) -> None:
        try:
            writer.write(data)
            await writer.drain()
        except OSError as exc:
            if _peer_gone(reader, exc):
                # the DISCONNECTED event is still queued behind this write
                logger.info("Server disconnected while sending (%s). Exiting.", exc)
                self._finish(CloseReason.REMOTE_DISCONNECT)
            else:
                self._write_failed("remote", exc)
            return
        self.events.count_out(data)

    async def _write_local(self, data: bytes) -> None:
        try:
            self.local_output.write(data)
            await self.local_output.drain()
        except (OSError, ValueError) as exc:
            self._write_failed("local", exc)
            return
        self.events.count_in(data)

    def _write_failed(self, direction: str, exc: BaseException) -> None:
        self._error = RelayWriteError(direction, cause=exc)
        logger.warning("Error occurred while writing to %s: %s", direction, exc)
        self._finish(CloseReason.WRITE_ERROR)

    async def _input_ended(self, event: PumpEvent) -> None:
        if event.error is not None:
            logger.warning("Local input failed (%s); treating it as end of input.", event.error)
        else:
            logger.debug("Local input reached EOF.")
        if self.state is SessionState.ACTIVE:
            self.state = SessionState.DRAINING_AFTER_EOF
        await self.events.log(
            "input.eof",
            "relay",
            error=str(event.error) if event.error is not None else None,
        )

    def _finish(self, reason: CloseReason) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.reason = reason
        self.state = SessionState.CLOSED

    async def _stop_pumps(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """
        Stop both pumps and close the connection. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self.state = SessionState.CLOSED
        await self._stop_pumps()
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as exc:
            logger.debug("Ignoring error while closing connection: %s", exc)
        logger.info("Connection closed.")


async def run_session(config: SessionConfig, local_input, local_output, **kwargs) -> SessionResult:
    """
    Run a whole relay session and return how it ended.
    """
    return await RelayOrchestrator(config, local_input, local_output, **kwargs).run()
