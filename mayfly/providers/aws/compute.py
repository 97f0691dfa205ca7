"""EC2 provisioning and teardown of the exit node."""

import logging
import time
from collections.abc import Callable
from typing import Any

import boto3

from mayfly.constants import (
    HOSTNAME_PREFIX,
    INSTANCE_POLL_INTERVAL_SECONDS,
    INSTANCE_RUNNING_TIMEOUT_SECONDS,
    INSTANCE_TERMINATED_TIMEOUT_SECONDS,
    InstanceState,
)
from mayfly.core.config import RunConfig
from mayfly.core.models import ResourceSet, TeardownResult
from mayfly.core.signals import CancellationToken
from mayfly.errors import (
    OperationCancelled,
    ProvisionError,
    ProvisionTimeoutError,
    TeardownError,
)
from mayfly.providers.aws.ami import AMIResolver
from mayfly.providers.aws.constants import (
    INSTANCE_NOT_FOUND_CODES,
    MANAGED_TAG_KEY,
    MANAGED_TAG_VALUE,
)
from mayfly.providers.aws.errors import handle_aws_errors
from mayfly.providers.aws.network import NetworkManager
from mayfly.providers.exceptions import ProviderAPIError, ProviderError

logger = logging.getLogger(__name__)


class InstanceWaitTimeout(Exception):
    """Instance did not reach the target state within the bound."""


def _first_instance(response: dict[str, Any]) -> dict[str, Any]:
    reservations = response.get("Reservations") or []
    instances = reservations[0].get("Instances") if reservations else None
    if not instances:
        raise ValueError("describe_instances returned no instance")
    return instances[0]


class EC2Provisioner:
    """Provision and tear down the exit node's EC2 resources.

    Parameters
    ----------
    region : str
        AWS region for all operations
    boto3_client_factory : Callable[..., Any] | None
        Optional factory for creating boto3 clients. If None, uses boto3.client
    running_timeout : float
        Bound on waiting for the running state, in seconds
    terminated_timeout : float
        Bound on waiting for the terminated state, in seconds
    poll_interval : float
        Delay between instance state checks, in seconds
    clock : Callable[[], float]
        Monotonic clock used for the wait bounds
    """

    def __init__(
        self,
        region: str,
        boto3_client_factory: Callable[..., Any] | None = None,
        running_timeout: float = INSTANCE_RUNNING_TIMEOUT_SECONDS,
        terminated_timeout: float = INSTANCE_TERMINATED_TIMEOUT_SECONDS,
        poll_interval: float = INSTANCE_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.region = region
        self.boto3_client_factory = boto3_client_factory or boto3.client
        self.ec2_client = self.boto3_client_factory("ec2", region_name=region)
        self.ssm_client = self.boto3_client_factory("ssm", region_name=region)
        self.running_timeout = running_timeout
        self.terminated_timeout = terminated_timeout
        self.poll_interval = poll_interval
        self.clock = clock

        self.ami_resolver = AMIResolver(self.ssm_client, region)
        self.network_manager = NetworkManager(self.ec2_client, region)

    def provision(
        self, config: RunConfig, user_data: str, cancel: CancellationToken
    ) -> ResourceSet:
        """Create the security group and instance and wait until it runs.

        Parameters
        ----------
        config : RunConfig
            Run configuration (instance type is taken from it)
        user_data : str
            Boot script. boto3 base64-encodes it for RunInstances.
        cancel : CancellationToken
            Checked before each resource is created and during the
            running-state wait

        Returns
        -------
        ResourceSet
            Fully populated resource set

        Raises
        ------
        ProvisionError
            If any step fails. ``resources`` holds whatever was created so the
            caller can tear it down.
        ProvisionTimeoutError
            If the instance does not reach running within the bound
        """
        resources = ResourceSet()

        try:
            image_id = self.ami_resolver.resolve_ami()
            vpc_id = self.network_manager.get_default_vpc_id()
            cancel.raise_if_cancelled("Cancelled before creating security group")

            resources.security_group_id = self.network_manager.create_security_group(
                vpc_id
            )
            self.network_manager.authorize_tailscale_ingress(resources.security_group_id)
            cancel.raise_if_cancelled("Cancelled before launching instance")

            resources.instance_id = self._run_instance(
                image_id, config.instance_type, resources.security_group_id, user_data
            )
            logger.info("Launched instance %s", resources.instance_id)

            self._wait_for_state(
                resources.instance_id,
                InstanceState.RUNNING,
                self.running_timeout,
                cancel,
            )
        except InstanceWaitTimeout as e:
            raise ProvisionTimeoutError(
                f"Waiting for instance to start: {e}", resources
            ) from e
        except OperationCancelled as e:
            raise ProvisionError(
                "Interrupted during provisioning", resources
            ) from e
        except (ProviderError, ValueError, KeyError) as e:
            raise ProvisionError(f"Provisioning failed: {e}", resources) from e

        resources.public_ip = self._get_public_ip(resources.instance_id)
        return resources

    def _run_instance(
        self, image_id: str, instance_type: str, sg_id: str, user_data: str
    ) -> str:
        with handle_aws_errors():
            response = self.ec2_client.run_instances(
                ImageId=image_id,
                InstanceType=instance_type,
                MinCount=1,
                MaxCount=1,
                SecurityGroupIds=[sg_id],
                UserData=user_data,
                TagSpecifications=[
                    {
                        "ResourceType": "instance",
                        "Tags": [
                            {"Key": "Name", "Value": HOSTNAME_PREFIX},
                            {"Key": MANAGED_TAG_KEY, "Value": MANAGED_TAG_VALUE},
                        ],
                    }
                ],
            )

        return response["Instances"][0]["InstanceId"]

    def _get_public_ip(self, instance_id: str) -> str:
        """Fetch the public IP. A failed lookup only loses the display value."""
        try:
            with handle_aws_errors():
                response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
            instance = _first_instance(response)
        except (ProviderError, ValueError) as e:
            logger.warning("Could not read public IP of %s: %s", instance_id, e)
            return ""

        return instance.get("PublicIpAddress", "") or ""

    def _describe_state(self, instance_id: str) -> str:
        try:
            with handle_aws_errors():
                response = self.ec2_client.describe_instances(InstanceIds=[instance_id])
        except ProviderAPIError as e:
            if e.error_code in INSTANCE_NOT_FOUND_CODES:
                return InstanceState.TERMINATED.value
            raise

        try:
            instance = _first_instance(response)
        except ValueError:
            return InstanceState.TERMINATED.value

        return instance["State"]["Name"]

    def _wait_for_state(
        self,
        instance_id: str,
        target: InstanceState,
        timeout: float,
        cancel: CancellationToken,
    ) -> None:
        """Poll the instance until it reaches ``target``.

        Raises
        ------
        InstanceWaitTimeout
            If the bound elapses first
        OperationCancelled
            If the token is cancelled first
        ProviderAPIError
            If the instance enters a state it cannot leave for ``target``
        """
        deadline = self.clock() + timeout

        while True:
            cancel.raise_if_cancelled(
                f"Cancelled waiting for {instance_id} to be {target.value}"
            )

            state = self._describe_state(instance_id)
            logger.debug("Instance %s is %s", instance_id, state)

            if state == target.value:
                return

            if target is InstanceState.RUNNING and state in (
                InstanceState.SHUTTING_DOWN.value,
                InstanceState.TERMINATED.value,
            ):
                raise ProviderAPIError(
                    message=f"Instance {instance_id} entered state '{state}' while starting",
                    error_code="InstanceTerminated",
                )

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise InstanceWaitTimeout(
                    f"instance {instance_id} not {target.value} after {timeout:.0f}s "
                    f"(last state: {state})"
                )

            if cancel.wait(min(self.poll_interval, remaining)):
                raise OperationCancelled(
                    f"Cancelled waiting for {instance_id} to be {target.value}"
                )

    def teardown(
        self, resources: ResourceSet, cancel: CancellationToken
    ) -> TeardownResult:
        """Terminate the instance, then delete the security group.

        Empty identifiers are skipped. Every applicable step is attempted and
        every failure recorded. The security group is deleted only once the
        instance is confirmed terminated, since EC2 refuses to delete a group
        still attached to an instance.

        Parameters
        ----------
        resources : ResourceSet
            Resources to remove, possibly partial
        cancel : CancellationToken
            Cuts the termination wait short

        Returns
        -------
        TeardownResult
            Completed steps and failures, first failure first
        """
        result = TeardownResult()
        terminated = True

        if resources.instance_id:
            terminated = self._terminate_instance(resources.instance_id, cancel, result)

        if resources.security_group_id:
            if not terminated:
                result.errors.append(
                    TeardownError(
                        f"Skipped deleting security group {resources.security_group_id}: "
                        f"instance {resources.instance_id} not confirmed terminated"
                    )
                )
            else:
                self._delete_security_group(resources.security_group_id, result)

        return result

    def _terminate_instance(
        self, instance_id: str, cancel: CancellationToken, result: TeardownResult
    ) -> bool:
        try:
            with handle_aws_errors():
                self.ec2_client.terminate_instances(InstanceIds=[instance_id])
        except ProviderAPIError as e:
            if e.error_code in INSTANCE_NOT_FOUND_CODES:
                logger.debug("Instance %s already gone", instance_id)
                result.steps.append("terminate_instance")
                return True
            result.errors.append(TeardownError(f"Terminating instance: {e}"))
            return False
        except ProviderError as e:
            result.errors.append(TeardownError(f"Terminating instance: {e}"))
            return False

        try:
            self._wait_for_state(
                instance_id,
                InstanceState.TERMINATED,
                self.terminated_timeout,
                cancel,
            )
        except (InstanceWaitTimeout, OperationCancelled, ProviderError) as e:
            result.errors.append(
                TeardownError(f"Waiting for instance termination: {e}")
            )
            return False

        logger.info("Instance %s terminated", instance_id)
        result.steps.append("terminate_instance")
        return True

    def _delete_security_group(self, sg_id: str, result: TeardownResult) -> None:
        try:
            self.network_manager.delete_security_group(sg_id)
        except ProviderError as e:
            result.errors.append(TeardownError(f"Deleting security group: {e}"))
            return

        result.steps.append("delete_security_group")
