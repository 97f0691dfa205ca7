"""Tailscale control plane provider."""

from mayfly.providers.tailscale.client import TailscaleRegistrar

__all__ = ["TailscaleRegistrar"]
