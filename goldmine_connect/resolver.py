# python
"""
goldmine_connect/resolver.py
Turn a host and port into a concrete TCP destination.
"""
import asyncio
from dataclasses import dataclass
import logging
import socket

from .errors import ResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Destination:
    host: str
    port: int
    address: str
    family: int

    def __str__(self) -> str:
        if self.family == socket.AF_INET6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


async def resolve(host: str, port: int) -> Destination:
    """
    Resolve `host`:`port` to the first stream-socket address the system
    resolver returns. Raises ResolutionError when that is not possible.
    """
    target = f"{host}:{port}"
    if not host:
        raise ResolutionError(f'error occurred while resolving TCP address "{target}"', cause=ValueError("empty host"))
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ResolutionError(f'error occurred while resolving TCP address "{target}"', cause=ValueError("port out of range"))

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM, proto=socket.IPPROTO_TCP)
    except (OSError, UnicodeError, ValueError) as exc:
        raise ResolutionError(f'error occurred while resolving TCP address "{target}"', cause=exc) from exc

    for family, _type, _proto, _canon, sockaddr in infos:
        if family in (socket.AF_INET, socket.AF_INET6):
            destination = Destination(host=host, port=port, address=sockaddr[0], family=family)
            logger.debug("Resolved %s to %s", target, destination)
            return destination
    raise ResolutionError(
        f'error occurred while resolving TCP address "{target}"',
        cause=OSError("no IPv4/IPv6 address available"),
    )
