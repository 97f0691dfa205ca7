"""Boot script that turns the instance into a Tailscale exit node."""

import shlex

from mayfly.constants import HOSTNAME_PREFIX

USER_DATA_TEMPLATE = """#!/bin/bash
set -euo pipefail

# Enable IP forwarding
cat >> /etc/sysctl.d/99-tailscale.conf <<SYSCTL
net.ipv4.ip_forward = 1
net.ipv6.conf.all.forwarding = 1
SYSCTL
sysctl -p /etc/sysctl.d/99-tailscale.conf

# Install Tailscale
curl -fsSL https://tailscale.com/install.sh | sh

# Start and connect
systemctl enable --now tailscaled
tailscale up --authkey={auth_key} --advertise-exit-node --hostname={hostname}
"""


def generate_user_data(auth_key: str, hostname: str = HOSTNAME_PREFIX) -> str:
    """Render the boot script.

    Parameters
    ----------
    auth_key : str
        Tailscale auth key the device joins with
    hostname : str
        Hostname the device registers under

    Returns
    -------
    str
        Plain-text bash script (not base64-encoded)
    """
    return USER_DATA_TEMPLATE.format(
        auth_key=shlex.quote(auth_key),
        hostname=shlex.quote(hostname),
    )
