"""Data types shared by the orchestrator and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RunState(str, Enum):
    """States of the lifecycle orchestrator."""

    IDLE = "idle"
    RECOVERING_ORPHANS = "recovering_orphans"
    PROVISIONING = "provisioning"
    AWAITING_REGISTRATION = "awaiting_registration"
    ACTIVE = "active"
    TEARING_DOWN = "tearing_down"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TeardownReason(str, Enum):
    """Why the active phase ended. Only affects the message shown."""

    EXPIRED = "expired"
    INTERRUPTED = "interrupted"
    PROVISION_FAILED = "provision_failed"


@dataclass
class ResourceSet:
    """Cloud resources created for one run.

    Fields stay empty when provisioning failed before they were obtained.

    Attributes
    ----------
    instance_id : str
        EC2 instance ID
    security_group_id : str
        Security group ID authorizing Tailscale ingress
    public_ip : str
        Public IPv4 address of the instance
    """

    instance_id: str = ""
    security_group_id: str = ""
    public_ip: str = ""

    def is_empty(self) -> bool:
        return not (self.instance_id or self.security_group_id)


@dataclass(frozen=True)
class Device:
    """A device registered on the tailnet."""

    id: str
    hostname: str


@dataclass
class TeardownResult:
    """Outcome of a best-effort teardown.

    Attributes
    ----------
    errors : list[Exception]
        Every step failure, in the order it happened
    steps : list[str]
        Names of the steps that completed
    """

    errors: list[Exception] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)

    @property
    def error(self) -> Exception | None:
        """First failure, retained for diagnostics."""
        return self.errors[0] if self.errors else None

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: TeardownResult) -> None:
        self.errors.extend(other.errors)
        self.steps.extend(other.steps)


@dataclass
class RegistrationResult:
    """Outcome of waiting for the device and approving exit-node routes."""

    device_id: str | None = None
    approved: bool = False
    error: Exception | None = None


@dataclass
class RecoveryResult:
    """Outcome of cleaning up resources left by a crashed run."""

    found: bool = False
    region: str = ""
    resources: ResourceSet | None = None
    teardown: TeardownResult | None = None
    error: Exception | None = None


@dataclass
class RunReport:
    """Aggregated result of a run, rendered by the CLI.

    Attributes
    ----------
    state : RunState
        Terminal state of the run
    trace : list[RunState]
        Every state entered, in order
    """

    state: RunState = RunState.IDLE
    trace: list[RunState] = field(default_factory=list)
    resources: ResourceSet | None = None
    recovery: RecoveryResult | None = None
    registration: RegistrationResult | None = None
    teardown: TeardownResult | None = None
    reason: TeardownReason | None = None
    error: Exception | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.SUCCEEDED
