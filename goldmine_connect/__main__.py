# python
"""
goldmine_connect.__main__
Command-line entry point: parse flags, load config, relay stdin/stdout.
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence

from . import __version__
from .config import load_config
from .errors import ConfigError, GoldmineError
from .relay import CloseReason, run_session
from .stdio import open_local_streams

logger = logging.getLogger("goldmine_connect")

USAGE_HELP = """\
Usage: goldmine-connect -host <host> -port <port> -name <username> -tag <BBS tag> [-xtrn <xtrn code>] [-timeout <timeout>]

Example: goldmine-connect -host example.com -port 2513 -name myUsername -tag myBBS

Required arguments:
  -host    The GoldMine host address to connect to.
  -port    The GoldMine rlogin port number.
  -name    Your username for the connection.
  -tag     The BBS tag (without brackets).

Optional arguments:
  -xtrn    Optional Gold Mine xtrn code.
  -timeout Byte receiving timeout, e.g., 1s, 500ms (default: 1s)."""

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goldmine-connect",
        description="Connect stdin/stdout to a GoldMine rlogin server.",
    )
    parser.add_argument("--host", "-host", dest="host", help="GoldMine host address")
    parser.add_argument("--port", "-port", dest="port", help="GoldMine rlogin port")
    parser.add_argument("--name", "-name", dest="name", help="Username")
    parser.add_argument("--tag", "-tag", dest="tag", help="BBS tag (no brackets)")
    parser.add_argument("--xtrn", "-xtrn", dest="xtrn", help="Gold Mine xtrn code (optional)")
    parser.add_argument(
        "--timeout",
        "-timeout",
        dest="timeout",
        help="Byte receiving timeout after the input EOF occurs (default: 1s)",
    )
    parser.add_argument("--local-name", dest="local_name", help="Local display name (defaults to --name)")
    parser.add_argument("--connect-timeout", dest="connect_timeout", help="TCP connect timeout (default: 10s)")
    parser.add_argument("--events-file", dest="events_file", help="Append JSONL session events to this file")
    parser.add_argument(
        "--log-level",
        default=os.getenv("GOLDMINE_LOG_LEVEL", "INFO"),
        help="Logging level written to stderr (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level: str) -> None:
    # stdout carries the relayed byte stream, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def _run(config) -> int:
    streams = await open_local_streams()
    try:
        result = await run_session(config, streams.reader, streams.writer)
    finally:
        streams.close()
    if result.reason is CloseReason.WRITE_ERROR:
        logger.warning("Session ended after a %s write error.", result.error.direction)
    else:
        logger.info("Session ended: %s.", result.reason.value)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    overrides = {
        "host": args.host,
        "port": args.port,
        "name": args.name,
        "tag": args.tag,
        "xtrn": args.xtrn,
        "timeout": args.timeout,
        "local_name": args.local_name,
        "connect_timeout": args.connect_timeout,
        "events_file": args.events_file,
    }
    try:
        config = load_config(overrides)
    except ConfigError as exc:
        logger.error("Error: %s", exc)
        print(USAGE_HELP, file=sys.stderr)
        return EXIT_FAILURE

    try:
        return asyncio.run(_run(config))
    except GoldmineError as exc:
        logger.error("%s failed: %s", exc.step, exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
