"""CLI entry point for mayfly."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence

import fire
from dotenv import find_dotenv, load_dotenv

from mayfly.cli.parsing import build_run_config
from mayfly.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
)
from mayfly.errors import ConfigError, ProvisionError
from mayfly.logging import configure_logging
from mayfly.providers.exceptions import ProviderAPIError, ProviderCredentialsError

logger = logging.getLogger(__name__)

AWS_CREDENTIALS_HINT = """AWS credentials not found

Configure them with one of:
  aws configure
  aws sso login --profile <profile>   (then export AWS_PROFILE=<profile>)
  export AWS_ACCESS_KEY_ID=... AWS_SECRET_ACCESS_KEY=..."""


def _as_text(value: object) -> str | None:
    """Undo Fire's literal coercion for string-valued flags."""
    if value is None:
        return None
    return str(value)


class MayflyCLI:
    """Command surface exposed through Fire.

    Every flag defaults to None so that an unset flag falls through to its
    environment variable and then to the built-in default.
    """

    def up(
        self,
        region: str | None = None,
        ttl: str | int | float | None = None,
        instance_type: str | None = None,
        tailscale_auth_key: str | None = None,
        tailscale_api_key: str | None = None,
        tailscale_tailnet: str | None = None,
    ) -> None:
        """Spin up an ephemeral VPN exit node.

        Provisions an EC2 instance with Tailscale configured as an exit node,
        runs a countdown, then tears everything down.

        Parameters
        ----------
        region : str | None
            AWS region [$AWS_REGION] (default 'us-east-1')
        ttl : str | int | float | None
            Time to live, e.g. 30m, 1h, 1h30m or seconds [$MAYFLY_TTL]
            (default '1h')
        instance_type : str | None
            EC2 instance type [$MAYFLY_INSTANCE_TYPE] (default 't3.micro')
        tailscale_auth_key : str | None
            Tailscale auth key [$TAILSCALE_AUTH_KEY]
        tailscale_api_key : str | None
            Tailscale API key [$TAILSCALE_API_KEY]
        tailscale_tailnet : str | None
            Tailscale tailnet name [$TAILSCALE_TAILNET]

        Raises
        ------
        ConfigError
            If the resolved configuration is invalid
        ProvisionError
            If provisioning failed
        """
        from mayfly.app import Mayfly

        config = build_run_config(
            region=_as_text(region),
            ttl=ttl,
            instance_type=_as_text(instance_type),
            tailscale_auth_key=_as_text(tailscale_auth_key),
            tailscale_api_key=_as_text(tailscale_api_key),
            tailscale_tailnet=_as_text(tailscale_tailnet),
        )
        report = Mayfly().up(config)

        if report.warnings:
            logger.debug("Run finished with %d warning(s)", len(report.warnings))


def handle_config_error(error: ConfigError, debug_mode: bool) -> int:
    """Report an invalid configuration.

    Raises
    ------
    ConfigError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    print(f"Invalid configuration: {error}", file=sys.stderr)
    return EXIT_CONFIG_ERROR


def handle_provision_error(error: ProvisionError, debug_mode: bool) -> int:
    """Report a failed provisioning with context-specific hints.

    Raises
    ------
    ProvisionError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    cause = error.__cause__

    if isinstance(cause, ProviderCredentialsError):
        print(AWS_CREDENTIALS_HINT, file=sys.stderr)
    elif isinstance(cause, ProviderAPIError) and cause.error_code == "UnauthorizedOperation":
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print("Mayfly needs permission to:", file=sys.stderr)
        print("  - ssm:GetParameter (AMI lookup)", file=sys.stderr)
        print("  - ec2:DescribeVpcs, ec2:DescribeInstances", file=sys.stderr)
        print("  - ec2:CreateSecurityGroup, ec2:AuthorizeSecurityGroupIngress", file=sys.stderr)
        print("  - ec2:DeleteSecurityGroup, ec2:CreateTags", file=sys.stderr)
        print("  - ec2:RunInstances, ec2:TerminateInstances", file=sys.stderr)
    elif isinstance(cause, ValueError) and "No default VPC" in str(cause):
        print(f"{cause}\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  aws ec2 create-default-vpc --region <region>", file=sys.stderr)
    else:
        print(f"Provisioning failed: {error}", file=sys.stderr)

    return EXIT_ERROR


def main(argv: Sequence[str] | None = None) -> int:
    """Run the requested command through Fire and return its exit code.

    A ``.env`` file in the working directory is loaded first; variables
    already set in the environment win. Fire exits with status 2 on
    unusable arguments.

    Parameters
    ----------
    argv : Sequence[str] | None
        Command line without the program name, ``sys.argv[1:]`` by default
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)

    debug_mode = os.environ.get("MAYFLY_DEBUG") == "1"
    configure_logging(debug=debug_mode)

    command = list(argv) if argv is not None else None

    try:
        fire.Fire(MayflyCLI(), command=command, name="mayfly")
    except ConfigError as e:
        return handle_config_error(e, debug_mode)
    except ProvisionError as e:
        return handle_provision_error(e, debug_mode)

    return EXIT_SUCCESS


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
