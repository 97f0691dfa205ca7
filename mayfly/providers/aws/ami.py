"""AMI resolution for the exit node."""

import logging
import re
from typing import Any

from mayfly.providers.aws.constants import AMI_PARAMETER_NAME
from mayfly.providers.aws.errors import handle_aws_errors

logger = logging.getLogger(__name__)

AMI_ID_PATTERN = re.compile(r"^ami-[0-9a-f]{8,17}$")


class AMIResolver:
    """Resolve the boot image from the SSM public parameter store."""

    def __init__(
        self, ssm_client: Any, region: str, parameter_name: str = AMI_PARAMETER_NAME
    ) -> None:
        """Initialize AMIResolver.

        Parameters
        ----------
        ssm_client : Any
            Boto3 SSM client
        region : str
            AWS region name
        parameter_name : str
            SSM parameter holding the AMI ID
        """
        self.ssm_client = ssm_client
        self.region = region
        self.parameter_name = parameter_name

    def resolve_ami(self) -> str:
        """Look up the latest Amazon Linux 2023 AMI ID.

        Returns
        -------
        str
            AMI ID

        Raises
        ------
        ProviderAPIError
            If the parameter lookup fails
        ValueError
            If the parameter value is not an AMI ID
        """
        with handle_aws_errors():
            response = self.ssm_client.get_parameter(Name=self.parameter_name)

        ami_id = response["Parameter"]["Value"]

        if not AMI_ID_PATTERN.match(ami_id):
            raise ValueError(
                f"Parameter {self.parameter_name} in region '{self.region}' "
                f"did not resolve to an AMI ID: '{ami_id}'"
            )

        logger.debug("Resolved AMI %s in %s", ami_id, self.region)
        return ami_id
