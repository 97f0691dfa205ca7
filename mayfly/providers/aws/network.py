"""Network and security group management for the exit node."""

import logging
import time
from typing import Any

from mayfly.constants import TAILSCALE_UDP_PORT
from mayfly.providers.aws.constants import (
    INGRESS_CIDR,
    MANAGED_TAG_KEY,
    MANAGED_TAG_VALUE,
    SECURITY_GROUP_DESCRIPTION,
    SECURITY_GROUP_NAME_PREFIX,
    SECURITY_GROUP_NOT_FOUND_CODES,
)
from mayfly.providers.aws.errors import handle_aws_errors
from mayfly.providers.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)


class NetworkManager:
    """Default-VPC lookup and the exit node's security group.

    Parameters
    ----------
    ec2_client : Any
        boto3 EC2 client for ``region``
    region : str
        Region the client talks to, used in error messages
    """

    def __init__(self, ec2_client: Any, region: str) -> None:
        self.ec2_client = ec2_client
        self.region = region

    def get_default_vpc_id(self) -> str:
        """Return the ID of the region's default VPC.

        Returns
        -------
        str
            Default VPC ID

        Raises
        ------
        ValueError
            If no default VPC is found
        """
        with handle_aws_errors():
            vpcs = self.ec2_client.describe_vpcs(
                Filters=[{"Name": "isDefault", "Values": ["true"]}]
            )

        if not vpcs["Vpcs"]:
            raise ValueError(
                f"No default VPC found in region '{self.region}'. "
                "Mayfly requires a default VPC"
            )

        return vpcs["Vpcs"][0]["VpcId"]

    def create_security_group(self, vpc_id: str) -> str:
        """Create an empty, tagged security group in the VPC.

        Parameters
        ----------
        vpc_id : str
            VPC to create the group in

        Returns
        -------
        str
            Security group ID
        """
        sg_name = f"{SECURITY_GROUP_NAME_PREFIX}-{int(time.time() * 1000)}"

        with handle_aws_errors():
            response = self.ec2_client.create_security_group(
                GroupName=sg_name,
                Description=SECURITY_GROUP_DESCRIPTION,
                VpcId=vpc_id,
                TagSpecifications=[
                    {
                        "ResourceType": "security-group",
                        "Tags": [
                            {"Key": "Name", "Value": sg_name},
                            {"Key": MANAGED_TAG_KEY, "Value": MANAGED_TAG_VALUE},
                        ],
                    }
                ],
            )

        sg_id = response["GroupId"]
        logger.debug("Created security group %s (%s) in %s", sg_id, sg_name, vpc_id)
        return sg_id

    def authorize_tailscale_ingress(self, sg_id: str) -> None:
        """Allow inbound Tailscale WireGuard traffic from any source.

        Parameters
        ----------
        sg_id : str
            Security group to authorize
        """
        with handle_aws_errors():
            self.ec2_client.authorize_security_group_ingress(
                GroupId=sg_id,
                IpPermissions=[
                    {
                        "IpProtocol": "udp",
                        "FromPort": TAILSCALE_UDP_PORT,
                        "ToPort": TAILSCALE_UDP_PORT,
                        "IpRanges": [
                            {
                                "CidrIp": INGRESS_CIDR,
                                "Description": "Tailscale WireGuard",
                            }
                        ],
                    }
                ],
            )

    def delete_security_group(self, sg_id: str) -> bool:
        """Delete a security group.

        Parameters
        ----------
        sg_id : str
            Security group to delete

        Returns
        -------
        bool
            True if the group was deleted, False if it no longer existed

        Raises
        ------
        ProviderAPIError
            If deletion fails for any other reason
        """
        try:
            with handle_aws_errors():
                self.ec2_client.delete_security_group(GroupId=sg_id)
        except ProviderAPIError as e:
            if e.error_code in SECURITY_GROUP_NOT_FOUND_CODES:
                logger.debug("Security group %s already deleted", sg_id)
                return False
            raise

        logger.debug("Deleted security group %s", sg_id)
        return True
