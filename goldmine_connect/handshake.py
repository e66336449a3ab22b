# python
"""
goldmine_connect/handshake.py
Build the rlogin-style handshake sent once before the byte relay starts.

Wire layout (every field NUL-terminated, leading NUL included):

    \\0 <local name> \\0 [<tag>]<remote username> \\0 xtrn=<code> \\0

When no door code is configured the terminal-type field is empty, so the
payload still ends with `\\0\\0` and the server sees the same field count.
Fields must not contain NUL bytes; the config loader rejects them.
"""
from .config import SessionConfig

NUL = b"\x00"


def _field(text: str) -> bytes:
    return text.encode("utf-8") + NUL


def encode(config: SessionConfig) -> bytes:
    payload = NUL
    payload += _field(config.display_name)
    payload += _field(f"[{config.tag}]{config.remote_username}")
    code = config.door_code
    if code:
        payload += _field(f"xtrn={code}")
    else:
        payload += NUL
    return payload
