"""Development session orchestration (``taqyon dev``).

Key classes:
    DevOrchestrator  - Picks a port, runs the frontend dev server, builds and
                       launches the native app, tears both down together
    ProcessPair      - Two co-terminating child processes
    PortLease        - Result of a bind probe
"""

from .orchestrator import (
    DevOrchestrator,
    DevState,
    ProcessPair,
    ProjectLayout,
    session_exit_code,
    terminate_process,
)
from .ports import (
    PortLease,
    PortState,
    has_ipv6_loopback,
    pick_port,
    probe_loopback,
    probe_port,
    wait_for_port,
)

__all__ = [
    "DevOrchestrator",
    "DevState",
    "PortLease",
    "PortState",
    "ProcessPair",
    "ProjectLayout",
    "has_ipv6_loopback",
    "pick_port",
    "probe_loopback",
    "probe_port",
    "session_exit_code",
    "terminate_process",
    "wait_for_port",
]
