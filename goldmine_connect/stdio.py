# python
"""
goldmine_connect/stdio.py
Attach the process's stdin/stdout to asyncio streams.

Pipes, ttys and sockets go through the loop's pipe transports. Regular files
(e.g. `goldmine-connect ... < script.txt`) are rejected by those transports,
so they get small adapters that read/write in the default executor.

The pipe transports switch their descriptors to non-blocking mode. A door's
tty is shared with the BBS that launched it, so LocalStreams.close() puts the
original modes back.
"""
import asyncio
import logging
import os
import stat
import sys
from typing import Dict, Optional

from .errors import LocalStreamError

logger = logging.getLogger(__name__)


def _fileno(fileobj) -> Optional[int]:
    try:
        return fileobj.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _is_regular_file(fileobj) -> bool:
    fd = _fileno(fileobj)
    if fd is None:
        return False
    try:
        mode = os.fstat(fd).st_mode
    except OSError:
        return False
    return stat.S_ISREG(mode)


class FileReader:
    """Async `read(n)` over a blocking binary file."""

    def __init__(self, fileobj):
        self._file = fileobj

    async def read(self, n: int = -1) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._file.read, n)


class FileWriter:
    """`write()` + async `drain()` over a blocking binary file."""

    def __init__(self, fileobj):
        self._file = fileobj

    def write(self, data: bytes) -> None:
        self._file.write(data)

    async def drain(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._file.flush)


class LocalStreams:
    """
    The local reader/writer pair plus what is needed to hand the
    descriptors back the way they were found.
    """

    def __init__(self, reader, writer, read_transport=None, blocking: Optional[Dict[int, bool]] = None):
        self.reader = reader
        self.writer = writer
        self.read_transport = read_transport
        self.blocking = dict(blocking or {})
        self._closed = False

    def restore_blocking(self) -> None:
        for fd, was_blocking in self.blocking.items():
            try:
                os.set_blocking(fd, was_blocking)
            except OSError as exc:
                logger.debug("Could not restore blocking mode on fd %s: %s", fd, exc)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # restore first: closing the transports releases the descriptors
        self.restore_blocking()
        if self.read_transport is not None:
            self.read_transport.close()
        close = getattr(self.writer, "close", None)
        if close is not None:
            close()


async def open_local_streams(stdin=None, stdout=None) -> LocalStreams:
    """
    Attach local input and output, defaulting to the process's stdin/stdout.
    Raises LocalStreamError when either one is missing (e.g. `<&-`).
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    if stdin is None or _fileno(stdin) is None:
        raise LocalStreamError("standard input is not available")
    if stdout is None or _fileno(stdout) is None:
        raise LocalStreamError("standard output is not available")
    loop = asyncio.get_running_loop()
    blocking: Dict[int, bool] = {}
    read_transport = None

    if _is_regular_file(stdin):
        logger.debug("stdin is a regular file; reading through the executor")
        reader = FileReader(getattr(stdin, "buffer", stdin))
    else:
        fd = _fileno(stdin)
        blocking[fd] = os.get_blocking(fd)
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        read_transport, _ = await loop.connect_read_pipe(lambda: protocol, stdin)

    if _is_regular_file(stdout):
        logger.debug("stdout is a regular file; writing through the executor")
        writer = FileWriter(getattr(stdout, "buffer", stdout))
    else:
        fd = _fileno(stdout)
        blocking.setdefault(fd, os.get_blocking(fd))
        try:
            w_transport, w_protocol = await loop.connect_write_pipe(
                asyncio.streams.FlowControlMixin, stdout
            )
        except BaseException:
            LocalStreams(reader, None, read_transport, blocking).close()
            raise
        writer = asyncio.StreamWriter(w_transport, w_protocol, None, loop)
    return LocalStreams(reader, writer, read_transport, blocking)
