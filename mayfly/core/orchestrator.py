"""Lifecycle orchestrator: provision, register, count down, tear down.

The orchestrator owns the run's ResourceSet and drives it through
``RECOVERING_ORPHANS → PROVISIONING → AWAITING_REGISTRATION → ACTIVE →
TEARING_DOWN → SUCCEEDED | FAILED``. Provisioning failures are fatal;
registration, teardown and state-file failures are recorded in the report and
never change the outcome.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from mayfly.constants import (
    COUNTDOWN_TICK_SECONDS,
    DEVICE_POLL_INTERVAL_SECONDS,
    DEVICE_POLL_TIMEOUT_SECONDS,
    HOSTNAME_PREFIX,
)
from mayfly.core.config import RunConfig
from mayfly.core.countdown import Countdown
from mayfly.core.interfaces import ComputeProvisioner, NetworkRegistrar, Reporter
from mayfly.core.models import (
    RecoveryResult,
    RegistrationResult,
    ResourceSet,
    RunReport,
    RunState,
    TeardownReason,
    TeardownResult,
)
from mayfly.core.signals import ShutdownSignals
from mayfly.core.state import PersistedRecord, StateStore
from mayfly.errors import (
    OperationCancelled,
    ProvisionError,
    RegistrationError,
    RegistrationTimeout,
    StateError,
    TeardownError,
)
from mayfly.providers.exceptions import ProviderError
from mayfly.userdata import generate_user_data
from mayfly.utils import format_duration

logger = logging.getLogger(__name__)


class LifecycleOrchestrator:
    """Drive a single mayfly run from orphan recovery to teardown.

    Parameters
    ----------
    config : RunConfig
        Run configuration, validated at the start of ``run``
    provisioner_factory : Callable[[str], ComputeProvisioner]
        Builds a provisioner for a region. Orphans may live in a different
        region than the new run.
    registrar : NetworkRegistrar
        Tailscale control plane client for the configured tailnet
    state_store : StateStore
        Persisted record of outstanding resources
    reporter : Reporter
        User-facing status output
    signals : ShutdownSignals | None
        Interrupt and abort tokens. A fresh, never-fired pair by default.
    user_data_factory : Callable[[str], str]
        Renders the boot script from the auth key
    device_poll_interval : float
        Seconds between device lookups
    device_poll_timeout : float
        Bound on waiting for the device to join
    tick : float
        Countdown refresh interval
    clock : Callable[[], float]
        Monotonic clock
    """

    def __init__(
        self,
        config: RunConfig,
        provisioner_factory: Callable[[str], ComputeProvisioner],
        registrar: NetworkRegistrar,
        state_store: StateStore,
        reporter: Reporter,
        signals: ShutdownSignals | None = None,
        user_data_factory: Callable[[str], str] = generate_user_data,
        device_poll_interval: float = DEVICE_POLL_INTERVAL_SECONDS,
        device_poll_timeout: float = DEVICE_POLL_TIMEOUT_SECONDS,
        tick: float = COUNTDOWN_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.provisioner_factory = provisioner_factory
        self.registrar = registrar
        self.state_store = state_store
        self.reporter = reporter
        self.signals = signals or ShutdownSignals()
        self.user_data_factory = user_data_factory
        self.device_poll_interval = device_poll_interval
        self.device_poll_timeout = device_poll_timeout
        self.tick = tick
        self.clock = clock
        self.report = RunReport()

    def _enter(self, state: RunState) -> None:
        logger.debug("State %s -> %s", self.report.state.value, state.value)
        self.report.state = state
        self.report.trace.append(state)

    def _warn(self, message: str) -> None:
        self.report.warnings.append(message)
        self.reporter.warn(message)

    def run(self) -> RunReport:
        """Execute the full run.

        Returns
        -------
        RunReport
            Report of a run that reached SUCCEEDED

        Raises
        ------
        ConfigError
            If the configuration is invalid. Nothing else happens.
        ProvisionError
            If provisioning failed. Partial resources were torn down and
            ``self.report`` holds the FAILED report.
        """
        self.config.validate()

        self.report.recovery = self.recover_orphans()

        provisioner = self._create_provisioner(self.config.region)
        resources = self.provision(provisioner)

        self.report.registration = self.await_registration()

        self._enter(RunState.ACTIVE)
        reason = self.run_countdown()
        self.report.reason = reason

        self._enter(RunState.TEARING_DOWN)
        if reason is TeardownReason.INTERRUPTED:
            self.reporter.warn("Interrupted, tearing down...")
        else:
            self.reporter.status("TTL expired, tearing down...")

        self.report.teardown = self.teardown(resources, provisioner)
        self._report_teardown(self.report.teardown)

        self._enter(RunState.SUCCEEDED)
        return self.report

    def _create_provisioner(self, region: str) -> ComputeProvisioner:
        try:
            return self.provisioner_factory(region)
        except (ProviderError, ValueError) as e:
            self._enter(RunState.PROVISIONING)
            self._enter(RunState.FAILED)
            error = ProvisionError(f"Could not create provisioner for {region}: {e}")
            self.report.error = error
            raise error from e

    def recover_orphans(self) -> RecoveryResult:
        """Tear down resources recorded by a previous run that never finished.

        Never raises: every failure is recorded and the new run proceeds.
        The record is cleared after the attempt whatever its outcome, so a
        resource that failed to delete here is no longer tracked.
        """
        self._enter(RunState.RECOVERING_ORPHANS)

        try:
            record = self.state_store.load()
        except StateError as e:
            self._warn(f"Could not read state file: {e}")
            return RecoveryResult(error=e)

        if record is None:
            return RecoveryResult()

        resources = record.to_resources()
        result = RecoveryResult(found=True, region=record.region, resources=resources)

        self.reporter.warn("Found orphaned resources from a previous run")
        self.reporter.info("Instance ID:", record.instance_id or "-")
        self.reporter.info("Security Group:", record.security_group_id or "-")
        self.reporter.info("Region:", record.region)
        self.reporter.status("Cleaning up orphaned resources...")

        try:
            provisioner = self.provisioner_factory(record.region)
        except (ProviderError, ValueError) as e:
            self._warn(f"Could not create provisioner for orphan cleanup: {e}")
            result.error = e
            provisioner = None

        result.teardown = self.teardown(resources, provisioner)

        if result.teardown.ok and result.error is None:
            self.reporter.success("Orphaned resources cleaned up")
        else:
            for error in result.teardown.errors:
                self._warn(f"Orphan cleanup: {error}")

        return result

    def provision(self, provisioner: ComputeProvisioner) -> ResourceSet:
        """Provision and persist the resource set.

        The returned or partial set is saved before the outcome is inspected.
        On failure the partial set is torn down and the error re-raised.
        """
        self._enter(RunState.PROVISIONING)
        self.reporter.status("Provisioning EC2 instance...")

        error: ProvisionError | None = None
        try:
            resources = provisioner.provision(
                self.config,
                self.user_data_factory(self.config.tailscale_auth_key),
                self.signals.interrupt,
            )
        except ProvisionError as e:
            error = e
            resources = e.resources if e.resources is not None else ResourceSet()

        self.report.resources = resources
        self._save_state(resources)

        if error is not None:
            self.report.error = error
            self.report.reason = TeardownReason.PROVISION_FAILED
            self.reporter.error(f"Provisioning failed: {error}")
            self.reporter.status("Cleaning up partial resources...")

            self._enter(RunState.TEARING_DOWN)
            self.report.teardown = self.teardown(resources, provisioner)
            self._report_teardown(self.report.teardown)
            self._enter(RunState.FAILED)
            raise error

        self.reporter.success("Instance running")
        self.reporter.info("Instance ID:", resources.instance_id)
        self.reporter.info("Public IP:", resources.public_ip or "-")
        self.reporter.info("Security Group:", resources.security_group_id)
        self.reporter.info("Region:", self.config.region)
        self.reporter.info("TTL:", format_duration(self.config.ttl))
        return resources

    def _save_state(self, resources: ResourceSet) -> None:
        if resources.is_empty():
            logger.debug("Nothing was created, not saving state")
            return

        try:
            self.state_store.save(
                PersistedRecord.from_resources(self.config.region, resources)
            )
        except StateError as e:
            self._warn(f"Could not save state file: {e}")

    def await_registration(self) -> RegistrationResult:
        """Wait for the device to join and approve it as an exit node.

        Never raises. Timeout, cancellation and API errors leave the node
        running without exit-node routes.
        """
        self._enter(RunState.AWAITING_REGISTRATION)
        self.reporter.status("Waiting for device to join tailnet...")
        result = RegistrationResult()

        try:
            device_id = self.wait_for_device()
        except (RegistrationError, OperationCancelled) as e:
            result.error = e
            self._warn(f"Could not find device in tailnet: {e}")
            return result

        result.device_id = device_id
        self.reporter.success(f"Device joined tailnet (ID: {device_id})")
        self.reporter.status("Approving exit node routes...")

        try:
            self.registrar.approve_exit_node(device_id)
        except RegistrationError as e:
            result.error = e
            self._warn(f"Could not approve exit node: {e}")
            return result

        result.approved = True
        self.reporter.success("Exit node approved")
        return result

    def wait_for_device(self) -> str:
        """Poll for the device until it appears, the bound passes, or cancel.

        Raises
        ------
        RegistrationTimeout
            If the device does not appear within the bound
        OperationCancelled
            If the interrupt token fires
        """
        interrupt = self.signals.interrupt
        interrupt.raise_if_cancelled("Interrupted before device joined")

        deadline = self.clock() + self.device_poll_timeout
        last_error: RegistrationError | None = None

        while True:
            try:
                device_id = self.registrar.find_device(HOSTNAME_PREFIX)
            except RegistrationError as e:
                logger.debug("Device lookup failed: %s", e)
                last_error = e
                device_id = None

            if device_id:
                return device_id

            remaining = deadline - self.clock()
            if remaining <= 0:
                message = "Timed out waiting for device to join tailnet"
                if last_error is not None:
                    message = f"{message} (last error: {last_error})"
                raise RegistrationTimeout(message)

            if interrupt.wait(min(self.device_poll_interval, remaining)):
                raise OperationCancelled("Interrupted while waiting for device")

    def run_countdown(self) -> TeardownReason:
        """Block until the TTL expires or the run is interrupted."""
        countdown = Countdown.from_ttl(
            self.config.ttl,
            self.signals.interrupt,
            on_tick=self.reporter.countdown,
            tick=self.tick,
            clock=self.clock,
        )

        try:
            return countdown.run()
        finally:
            self.reporter.countdown_done()

    def teardown(
        self, resources: ResourceSet, provisioner: ComputeProvisioner | None
    ) -> TeardownResult:
        """Best-effort removal of the device, the cloud resources and the record.

        Every step runs regardless of earlier failures. Failures are
        collected, never raised.
        """
        result = TeardownResult()

        self._remove_device(result)

        if provisioner is not None and not resources.is_empty():
            self.reporter.status("Terminating EC2 instance...")
            compute_result = provisioner.teardown(resources, self.signals.abort)
            result.merge(compute_result)

            if compute_result.ok:
                self.reporter.success("Instance terminated and security group deleted")
            else:
                self.reporter.error(f"AWS teardown error: {compute_result.error}")

        try:
            self.state_store.clear()
        except StateError as e:
            result.errors.append(e)
            self.reporter.warn(f"Could not clear state file: {e}")
        else:
            result.steps.append("clear_state")

        return result

    def _remove_device(self, result: TeardownResult) -> None:
        self.reporter.status("Removing device from tailnet...")

        try:
            device_id = self.registrar.find_device(HOSTNAME_PREFIX)
        except RegistrationError as e:
            result.errors.append(TeardownError(f"Looking up device: {e}"))
            self.reporter.warn(f"Could not look up device in tailnet: {e}")
            return

        if device_id is None:
            self.reporter.warn("Device not found in tailnet (may not have joined yet)")
            return

        try:
            self.registrar.remove_device(device_id)
        except RegistrationError as e:
            result.errors.append(TeardownError(f"Removing device {device_id}: {e}"))
            self.reporter.warn(f"Failed to remove device: {e}")
            return

        result.steps.append("remove_device")
        self.reporter.success("Device removed from tailnet")

    def _report_teardown(self, result: TeardownResult) -> None:
        if result.ok:
            self.reporter.success("All resources cleaned up")
            return

        for error in result.errors:
            self.report.warnings.append(f"Teardown: {error}")

        self.reporter.warn(
            f"Cleanup finished with {len(result.errors)} error(s); "
            f"first: {result.error}"
        )
