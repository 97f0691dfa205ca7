"""Global constants for mayfly.

This module contains application-wide constants shared by the orchestrator,
the providers and the CLI.
"""

from enum import Enum

HOSTNAME_PREFIX = "mayfly-exit"
"""Hostname the exit node joins the tailnet with.

The boot script passes it to ``tailscale up --hostname`` and the registrar
looks devices up by this prefix. Tailscale may append a numeric suffix when
the name is already taken, hence the prefix match.
"""

TAILSCALE_UDP_PORT = 41641
"""UDP port Tailscale uses for direct WireGuard connections."""

EXIT_NODE_ROUTES = ("0.0.0.0/0", "::/0")
"""Routes approved on the device to make it an exit node."""

DEFAULT_REGION = "us-east-1"
"""Default AWS region when neither flag nor environment sets one."""

DEFAULT_TTL_SECONDS = 3600.0
"""Default time to live of the exit node (one hour)."""

DEFAULT_INSTANCE_TYPE = "t3.micro"
"""Default EC2 instance type. Small general-purpose burstable class."""

COUNTDOWN_TICK_SECONDS = 1.0
"""Refresh interval of the countdown display.

Also the upper bound by which the active phase can overrun the deadline.
"""

DEVICE_POLL_INTERVAL_SECONDS = 5.0
"""Delay between tailnet device lookups while waiting for registration."""

DEVICE_POLL_TIMEOUT_SECONDS = 180.0
"""Maximum time to wait for the device to join the tailnet."""

INSTANCE_RUNNING_TIMEOUT_SECONDS = 300.0
"""Maximum time to wait for the instance to reach the running state."""

INSTANCE_TERMINATED_TIMEOUT_SECONDS = 300.0
"""Maximum time to wait for the instance to reach the terminated state."""

INSTANCE_POLL_INTERVAL_SECONDS = 5.0
"""Delay between describe_instances calls while waiting on a state change."""

STATE_DIR_NAME = ".mayfly"
"""Directory under the user's home holding the state file."""

STATE_FILE_NAME = "state.json"
"""Name of the persisted record file."""

EXIT_SUCCESS = 0
"""Exit code for a completed run, including interrupted runs torn down cleanly."""

EXIT_ERROR = 1
"""Exit code for orchestration failures (provisioning, credentials, API)."""

EXIT_CONFIG_ERROR = 2
"""Exit code for invalid configuration. Nothing was provisioned."""


class InstanceState(str, Enum):
    """EC2 instance state names mayfly waits on."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"
