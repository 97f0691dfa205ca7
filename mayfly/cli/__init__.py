"""CLI argument parsing and handling."""

from __future__ import annotations

from mayfly.cli.parsing import (
    build_run_config,
    duration_flag_or_env,
    flag_or_env,
    parse_duration,
)

__all__ = [
    "build_run_config",
    "duration_flag_or_env",
    "flag_or_env",
    "parse_duration",
]
