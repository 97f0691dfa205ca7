"""CLI argument parsing and parameter conversion utilities."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from mayfly.constants import DEFAULT_INSTANCE_TYPE, DEFAULT_REGION, DEFAULT_TTL_SECONDS
from mayfly.core.config import RunConfig
from mayfly.errors import ConfigError

DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

ENV_REGION = "AWS_REGION"
ENV_TTL = "MAYFLY_TTL"
ENV_INSTANCE_TYPE = "MAYFLY_INSTANCE_TYPE"
ENV_TAILSCALE_AUTH_KEY = "TAILSCALE_AUTH_KEY"
ENV_TAILSCALE_API_KEY = "TAILSCALE_API_KEY"
ENV_TAILSCALE_TAILNET = "TAILSCALE_TAILNET"


def _finite(seconds: float, original: object) -> float:
    if not math.isfinite(seconds):
        raise ConfigError(f"Invalid duration: '{original}'")
    return seconds


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Accepts Go-style duration strings (``90s``, ``1h30m``, ``1.5h``,
    ``500ms``) and bare numbers, which are taken as seconds.

    Parameters
    ----------
    value : str | int | float
        Duration to parse

    Returns
    -------
    float
        Duration in seconds (may be zero or negative; validation is separate)

    Raises
    ------
    ConfigError
        If the value is not a valid duration
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        return _finite(float(value), value)

    text = str(value).strip()
    if not text:
        raise ConfigError("Invalid duration: empty value")

    try:
        seconds = float(text)
    except ValueError:
        seconds = None

    if seconds is not None:
        return _finite(seconds, value)

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ConfigError(
            f"Invalid duration: '{value}'. Use e.g. 30m, 1h, 1h30m or seconds"
        )

    return sign * total


def flag_or_env(
    flag_value: str | None,
    env_name: str,
    fallback: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Resolve a string setting: explicit flag, then environment, then default.

    Parameters
    ----------
    flag_value : str | None
        Value given on the command line, None when the flag was not passed
    env_name : str
        Environment variable to fall back to
    fallback : str
        Default when neither is set
    environ : Mapping[str, str] | None
        Environment to read, ``os.environ`` by default

    Returns
    -------
    str
        Resolved value
    """
    if flag_value is not None:
        return flag_value

    env = os.environ if environ is None else environ
    env_value = env.get(env_name)
    if env_value:
        return env_value

    return fallback


def duration_flag_or_env(
    flag_value: str | int | float | None,
    env_name: str,
    fallback: float,
    environ: Mapping[str, str] | None = None,
) -> float:
    """Resolve a duration setting with the same precedence as ``flag_or_env``.

    Raises
    ------
    ConfigError
        If the flag or environment value is not a valid duration
    """
    if flag_value is not None:
        return parse_duration(flag_value)

    env = os.environ if environ is None else environ
    env_value = env.get(env_name)
    if env_value:
        try:
            return parse_duration(env_value)
        except ConfigError as e:
            raise ConfigError(f"${env_name}: {e}") from e

    return fallback


def build_run_config(
    region: str | None = None,
    ttl: str | int | float | None = None,
    instance_type: str | None = None,
    tailscale_auth_key: str | None = None,
    tailscale_api_key: str | None = None,
    tailscale_tailnet: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunConfig:
    """Build the run configuration from flags, environment and defaults.

    The result is not validated; ``RunConfig.validate`` does that once.

    Returns
    -------
    RunConfig
        Resolved configuration
    """
    return RunConfig(
        region=flag_or_env(region, ENV_REGION, DEFAULT_REGION, environ),
        ttl=duration_flag_or_env(ttl, ENV_TTL, DEFAULT_TTL_SECONDS, environ),
        instance_type=flag_or_env(
            instance_type, ENV_INSTANCE_TYPE, DEFAULT_INSTANCE_TYPE, environ
        ),
        tailscale_auth_key=flag_or_env(
            tailscale_auth_key, ENV_TAILSCALE_AUTH_KEY, "", environ
        ),
        tailscale_api_key=flag_or_env(
            tailscale_api_key, ENV_TAILSCALE_API_KEY, "", environ
        ),
        tailscale_tailnet=flag_or_env(
            tailscale_tailnet, ENV_TAILSCALE_TAILNET, "", environ
        ),
    )


__all__ = [
    "parse_duration",
    "flag_or_env",
    "duration_flag_or_env",
    "build_run_config",
]
