"""Mayfly application wiring."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from mayfly.core.config import RunConfig
from mayfly.core.interfaces import ComputeProvisioner, NetworkRegistrar, Reporter
from mayfly.core.models import RunReport
from mayfly.core.orchestrator import LifecycleOrchestrator
from mayfly.core.signals import ShutdownSignals
from mayfly.core.state import StateStore
from mayfly.display import Display
from mayfly.providers.aws.compute import EC2Provisioner
from mayfly.providers.tailscale.client import TailscaleRegistrar

logger = logging.getLogger(__name__)


class Mayfly:
    """Build the orchestrator's collaborators and run it.

    Every collaborator can be replaced for tests; the defaults talk to AWS
    and the Tailscale API.

    Parameters
    ----------
    provisioner_factory : Callable[[str], ComputeProvisioner] | None
        Builds a provisioner for a region
    registrar_factory : Callable[[RunConfig], NetworkRegistrar] | None
        Builds a registrar for the configured tailnet
    state_store : StateStore | None
        Persisted state record
    reporter : Reporter | None
        Status output
    boto3_client_factory : Callable | None
        Factory passed to the default EC2 provisioner
    """

    def __init__(
        self,
        provisioner_factory: Callable[[str], ComputeProvisioner] | None = None,
        registrar_factory: Callable[[RunConfig], NetworkRegistrar] | None = None,
        state_store: StateStore | None = None,
        reporter: Reporter | None = None,
        boto3_client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._boto3_client_factory = boto3_client_factory
        self._provisioner_factory = provisioner_factory or self._create_provisioner
        self._registrar_factory = registrar_factory or self._create_registrar
        self.state_store = state_store or StateStore()
        self.reporter = reporter or Display()

    def _create_provisioner(self, region: str) -> ComputeProvisioner:
        return EC2Provisioner(
            region=region,
            boto3_client_factory=self._boto3_client_factory,
        )

    @staticmethod
    def _create_registrar(config: RunConfig) -> NetworkRegistrar:
        return TailscaleRegistrar(
            api_key=config.tailscale_api_key,
            tailnet=config.tailscale_tailnet,
        )

    def orchestrator(
        self, config: RunConfig, signals: ShutdownSignals | None = None, **kwargs: Any
    ) -> LifecycleOrchestrator:
        """Create an orchestrator for ``config``."""
        return LifecycleOrchestrator(
            config=config,
            provisioner_factory=self._provisioner_factory,
            registrar=self._registrar_factory(config),
            state_store=self.state_store,
            reporter=self.reporter,
            signals=signals,
            **kwargs,
        )

    def up(
        self,
        config: RunConfig,
        signals: ShutdownSignals | None = None,
        install_signal_handlers: bool = True,
    ) -> RunReport:
        """Run the exit node for its TTL and tear it down.

        Parameters
        ----------
        config : RunConfig
            Resolved run configuration
        signals : ShutdownSignals | None
            Shutdown tokens. Created when None.
        install_signal_handlers : bool
            Route SIGINT/SIGTERM to ``signals`` for the duration of the run

        Returns
        -------
        RunReport
            Report of the completed run

        Raises
        ------
        ConfigError
            If the configuration is invalid
        ProvisionError
            If provisioning failed (partial resources were torn down)
        """
        signals = signals or ShutdownSignals()
        if install_signal_handlers:
            signals.install()

        try:
            return self.orchestrator(config, signals).run()
        finally:
            if install_signal_handlers:
                signals.restore()
