"""AWS-specific constants for EC2 provisioning."""

AMI_PARAMETER_NAME = "/aws/service/ami-amazon-linux-latest/al2023-ami-kernel-default-x86_64"
"""SSM public parameter resolving to the latest Amazon Linux 2023 x86_64 AMI.

AWS keeps this parameter pointed at the newest stable image in every region,
so no AMI ID is ever hardcoded.
"""

SECURITY_GROUP_NAME_PREFIX = "mayfly"
"""Security group names are ``mayfly-<unix millis>``."""

SECURITY_GROUP_DESCRIPTION = "Mayfly ephemeral exit node - safe to delete"

INGRESS_CIDR = "0.0.0.0/0"
"""Tailscale peers connect from anywhere."""

MANAGED_TAG_KEY = "mayfly"
"""Tag key marking every resource mayfly creates."""

MANAGED_TAG_VALUE = "true"

INSTANCE_NOT_FOUND_CODES = frozenset(
    ("InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed")
)
"""Error codes meaning the instance is already gone."""

SECURITY_GROUP_NOT_FOUND_CODES = frozenset(
    ("InvalidGroup.NotFound", "InvalidGroupId.Malformed")
)
"""Error codes meaning the security group is already gone."""
