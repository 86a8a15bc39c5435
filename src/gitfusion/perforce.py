"""Perforce server address helpers.

Git Fusion reports the address of its backing Perforce server in the
output of its ``info`` command, e.g.::

    Server address: ssl:1666
    Server encryption: encrypted

The reported address is often relative to the Git Fusion host
(``1666``, ``:1666``, ``localhost:1666``) and has to be rewritten to
include the host taken from the Git Fusion URL before it is usable
from elsewhere.
"""

import re
from dataclasses import dataclass

_SERVER_ADDRESS = re.compile(r"^Server address: (.*)", re.MULTILINE)
_SERVER_ENCRYPTED = re.compile(r"^Server encryption: encrypted", re.MULTILINE)

_BARE_PORT = re.compile(r"(ssl:)?(\d+)")
_LOCALHOST_PORT = re.compile(r"(ssl:)?(?:localhost|127\.0\.0\.1|localhost\.localdom(?:ain)?)(:.+)?")

SSL_PREFIX = "ssl:"


@dataclass(frozen=True)
class ServerInfo:
    """Perforce details scraped from Git Fusion ``info`` output."""

    address: str | None
    encrypted: bool


def parse_server_info(text: str) -> ServerInfo:
    """Extract the server address and encryption flag from info output."""
    address = _SERVER_ADDRESS.search(text)
    return ServerInfo(
        address=address.group(1) if address else None,
        encrypted=_SERVER_ENCRYPTED.search(text) is not None,
    )


def expand_perforce_port(port: str | None, host: str) -> str | None:
    """Expand a Perforce port so that it names a reachable host.

    - ``:1666``            -> ``1666`` (leading colon dropped first)
    - ``1666``             -> ``host:1666``
    - ``ssl:1666``         -> ``ssl:host:1666``
    - ``localhost:1666``   -> ``host:1666`` (also 127.0.0.1, localhost.localdom[ain])

    Empty or missing ports are returned unchanged.
    """
    if not port:
        return port

    expanded = port[1:] if port.startswith(":") else port

    match = _BARE_PORT.fullmatch(expanded)
    if match:
        expanded = f"{match.group(1) or ''}{host}:{match.group(2)}"

    match = _LOCALHOST_PORT.fullmatch(expanded)
    if match:
        return f"{match.group(1) or ''}{host}{match.group(2) or ''}"
    return expanded


def with_ssl_prefix(port: str) -> str:
    """Prefix the port with ``ssl:`` unless it already has it."""
    return port if port.startswith(SSL_PREFIX) else SSL_PREFIX + port
