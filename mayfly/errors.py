"""Error taxonomy for a mayfly run.

Provisioning errors are fatal to the run. Registration, teardown and state
errors are recorded and reported but never change the run's outcome.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mayfly.core.models import ResourceSet


class MayflyError(Exception):
    """Base class for all mayfly errors."""


class ConfigError(MayflyError, ValueError):
    """Run configuration failed validation. Raised before any side effect."""


class ProvisionError(MayflyError):
    """Provisioning failed partway.

    Parameters
    ----------
    message : str
        Human-readable description of the failed step
    resources : ResourceSet | None
        Whatever was created before the failure. Callers must tear it down.
    """

    def __init__(self, message: str, resources: ResourceSet | None = None) -> None:
        super().__init__(message)
        self.resources = resources


class ProvisionTimeoutError(ProvisionError):
    """Instance did not reach the running state within its bound."""


class RegistrationError(MayflyError):
    """Tailscale control plane request failed."""


class RegistrationTimeout(RegistrationError):
    """Device did not join the tailnet within its bound."""


class TeardownError(MayflyError):
    """A best-effort teardown step failed."""


class StateError(MayflyError):
    """State file could not be read or written."""


class OperationCancelled(MayflyError):
    """A cancellable wait was interrupted before completing."""
