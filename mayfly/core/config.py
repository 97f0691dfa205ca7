"""Immutable run configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mayfly.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, repr=False)
class RunConfig:
    """Settings for a single run, resolved once at startup.

    Attributes
    ----------
    region : str
        AWS region to launch in
    ttl : float
        Time to live in seconds
    instance_type : str
        EC2 instance type
    tailscale_auth_key : str
        Auth key the instance joins the tailnet with
    tailscale_api_key : str
        API key used to approve and remove the device
    tailscale_tailnet : str
        Tailnet name the device joins
    """

    region: str
    ttl: float
    instance_type: str
    tailscale_auth_key: str
    tailscale_api_key: str
    tailscale_tailnet: str

    def validate(self) -> None:
        """Validate every field is set and the TTL is positive.

        Raises
        ------
        ConfigError
            If a field is empty or the TTL is not positive
        """
        required_fields = {
            "region": "region is required",
            "instance_type": "instance-type is required",
            "tailscale_auth_key": (
                "tailscale-auth-key is required (flag or $TAILSCALE_AUTH_KEY)"
            ),
            "tailscale_api_key": (
                "tailscale-api-key is required (flag or $TAILSCALE_API_KEY)"
            ),
            "tailscale_tailnet": (
                "tailscale-tailnet is required (flag or $TAILSCALE_TAILNET)"
            ),
        }

        for field_name, required_msg in required_fields.items():
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(required_msg)

        if isinstance(self.ttl, bool) or not isinstance(self.ttl, (int, float)):
            raise ConfigError("ttl must be a number of seconds")

        if self.ttl <= 0:
            raise ConfigError("ttl must be positive")

        logger.debug(
            "Validated run config: region=%s instance_type=%s ttl=%ss",
            self.region,
            self.instance_type,
            self.ttl,
        )

    def __repr__(self) -> str:
        return (
            f"RunConfig(region={self.region!r}, ttl={self.ttl!r}, "
            f"instance_type={self.instance_type!r}, "
            f"tailscale_tailnet={self.tailscale_tailnet!r})"
        )
