"""AWS provider."""

from mayfly.providers.aws.compute import EC2Provisioner

__all__ = ["EC2Provisioner"]
