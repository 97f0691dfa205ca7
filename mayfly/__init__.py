"""Mayfly - ephemeral Tailscale exit nodes on EC2."""

__version__ = "0.1.0"
