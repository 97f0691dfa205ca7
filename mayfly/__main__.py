#!/usr/bin/env python3
"""Mayfly - ephemeral Tailscale exit nodes on EC2."""

from mayfly.cli.main import run

if __name__ == "__main__":
    run()
