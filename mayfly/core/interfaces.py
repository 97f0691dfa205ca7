"""Protocols for the orchestrator's collaborators."""

from __future__ import annotations

from typing import Protocol

from mayfly.core.config import RunConfig
from mayfly.core.models import ResourceSet, TeardownResult
from mayfly.core.signals import CancellationToken


class ComputeProvisioner(Protocol):
    """Creates and destroys the exit node's compute resources in one region."""

    region: str

    def provision(
        self, config: RunConfig, user_data: str, cancel: CancellationToken
    ) -> ResourceSet:
        """Create the security group and instance and wait until it runs.

        Raises
        ------
        ProvisionError
            With ``resources`` holding everything created before the failure
        """
        ...

    def teardown(
        self, resources: ResourceSet, cancel: CancellationToken
    ) -> TeardownResult:
        """Terminate the instance, then delete the security group."""
        ...


class NetworkRegistrar(Protocol):
    """Tailscale control plane operations on a single tailnet."""

    def find_device(self, hostname_prefix: str) -> str | None:
        """Return the ID of the first device whose hostname has the prefix."""
        ...

    def approve_exit_node(self, device_id: str) -> None:
        ...

    def remove_device(self, device_id: str) -> None:
        ...


class Reporter(Protocol):
    """User-facing status output."""

    def status(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def info(self, label: str, value: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def countdown(self, remaining: float) -> None:
        ...

    def countdown_done(self) -> None:
        ...
