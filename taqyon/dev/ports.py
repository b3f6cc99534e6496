"""Port selection and readiness polling for the development session."""

from __future__ import annotations

import asyncio
import functools
import random
import socket
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from taqyon.config import DevConfig
from taqyon.errors import FrontendNotReady
from taqyon.utils import print_warning

READY_HOSTS: tuple[str, ...] = ("127.0.0.1", "::1")


class PortState(str, Enum):
    FREE = "free"
    CLAIMED = "claimed"


@dataclass(frozen=True)
class PortLease:
    """Result of one bind probe.  Advisory only: the port is released again."""

    port: int
    state: PortState

    @property
    def free(self) -> bool:
        return self.state is PortState.FREE


# ---------------------------------------------------------------------------
# Probing
# ---------------------------------------------------------------------------


def probe_port(port: int, host: str = "127.0.0.1") -> PortLease:
    """Bind a transient listener on ``host:port`` and release it immediately."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        sock.listen(1)
    except OSError:
        return PortLease(port, PortState.CLAIMED)
    finally:
        sock.close()
    return PortLease(port, PortState.FREE)


@functools.lru_cache(maxsize=1)
def has_ipv6_loopback() -> bool:
    """Whether ``::1`` can be bound on this machine."""
    if not socket.has_ipv6:
        return False
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as sock:
            sock.bind(("::1", 0))
    except OSError:
        return False
    return True


def probe_loopback(port: int, host: str = "127.0.0.1") -> PortLease:
    """Probe *host* and, where available, the IPv6 loopback as well.

    Readiness polling accepts a listener on any of :data:`READY_HOSTS`, so a
    port held on ``::1`` alone is reported as claimed.
    """
    lease = probe_port(port, host)
    if lease.free and host != "::1" and has_ipv6_loopback():
        return probe_port(port, "::1")
    return lease


def pick_port(
    config: DevConfig,
    rng: random.Random | None = None,
    probe: Callable[[int, str], PortLease] = probe_loopback,
) -> PortLease:
    """Pick a random free port in ``[config.port_min, config.port_max]``.

    Tries ``config.max_port_attempts`` random candidates.  When every one is
    taken the configured fallback port is returned with a warning; the
    frontend's strict-port flag turns a real collision into a visible failure.
    """
    rng = rng or random.Random()
    for _ in range(config.max_port_attempts):
        lease = probe(rng.randint(config.port_min, config.port_max), config.host)
        if lease.free:
            return lease

    print_warning(
        f"No free port found after {config.max_port_attempts} attempts; "
        f"falling back to {config.fallback_port}."
    )
    return probe(config.fallback_port, config.host)


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------


async def _can_connect(host: str, port: int, timeout: float = 1.0) -> bool:
    try:
        _reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def wait_for_port(
    port: int,
    timeout: float = 60.0,
    interval: float = 0.25,
    hosts: Sequence[str] = READY_HOSTS,
) -> str:
    """Poll until something accepts TCP connections on *port*.

    Vite may bind only the IPv6 loopback, so every host in *hosts* is tried
    on each round.

    Returns:
        The host that accepted the connection.

    Raises:
        FrontendNotReady: Nothing accepted within *timeout* seconds.
    """
    deadline = time.monotonic() + timeout
    while True:
        for host in hosts:
            if await _can_connect(host, port):
                return host

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FrontendNotReady(port, timeout)
        await asyncio.sleep(min(interval, remaining))
