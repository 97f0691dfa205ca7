"""Tailscale control plane client."""

from __future__ import annotations

import logging
from typing import Any

import requests

from mayfly.constants import EXIT_NODE_ROUTES
from mayfly.core.models import Device
from mayfly.errors import RegistrationError

logger = logging.getLogger(__name__)

TAILSCALE_API_URL = "https://api.tailscale.com/api/v2"
REQUEST_TIMEOUT_SECONDS = 30


class TailscaleRegistrar:
    """Find, approve and remove devices on a tailnet.

    Parameters
    ----------
    api_key : str
        Tailscale API access token
    tailnet : str
        Tailnet name (e.g. ``example.com`` or ``-`` for the key's default)
    session : requests.Session | None
        Optional session, injectable for tests
    base_url : str
        API root URL
    """

    def __init__(
        self,
        api_key: str,
        tailnet: str,
        session: requests.Session | None = None,
        base_url: str = TAILSCALE_API_URL,
    ) -> None:
        self.tailnet = tailnet
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.auth = (api_key, "")

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(
                method, url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs
            )
        except requests.RequestException as e:
            raise RegistrationError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise RegistrationError(
                f"{method} {path} returned {response.status_code}: "
                f"{response.text.strip()[:200]}"
            )

        return response

    def list_devices(self) -> list[Device]:
        """List devices in the tailnet, in API order.

        Raises
        ------
        RegistrationError
            If the request fails or the response is malformed
        """
        response = self._request("GET", f"/tailnet/{self.tailnet}/devices")

        try:
            payload = response.json()
            return [
                Device(id=str(device["id"]), hostname=str(device.get("hostname") or ""))
                for device in payload.get("devices", [])
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise RegistrationError(f"Unexpected device list response: {e}") from e

    def find_device(self, hostname_prefix: str) -> str | None:
        """Return the ID of the first device whose hostname has the prefix.

        Multiple matches are not disambiguated; the first one in API order
        wins.

        Parameters
        ----------
        hostname_prefix : str
            Hostname prefix to match

        Returns
        -------
        str | None
            Device ID, or None when no device matches
        """
        for device in self.list_devices():
            if device.hostname.startswith(hostname_prefix):
                logger.debug("Matched device %s (%s)", device.id, device.hostname)
                return device.id

        return None

    def approve_exit_node(self, device_id: str) -> None:
        """Enable exit-node routes (``0.0.0.0/0`` and ``::/0``) on the device."""
        self._request(
            "POST",
            f"/device/{device_id}/routes",
            json={"routes": list(EXIT_NODE_ROUTES)},
        )
        logger.debug("Approved exit node routes on %s", device_id)

    def remove_device(self, device_id: str) -> None:
        """Delete the device from the tailnet."""
        self._request("DELETE", f"/device/{device_id}")
        logger.debug("Removed device %s", device_id)
