"""Tests for the mayfly command line interface."""

from unittest.mock import MagicMock

import pytest

from mayfly.cli import main as cli_main
from mayfly.core.models import RunReport, RunState
from mayfly.errors import ConfigError, ProvisionError
from mayfly.providers.exceptions import ProviderAPIError, ProviderCredentialsError


@pytest.fixture
def cli_env(tmp_path, state_dir, monkeypatch):
    """Run the CLI from an empty directory with logging setup stubbed out."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_main, "configure_logging", MagicMock())
    return tmp_path


@pytest.fixture
def fake_up(monkeypatch):
    """Replace Mayfly.up and capture the config it receives."""
    calls = []

    def up(self, config, *args, **kwargs):
        calls.append(config)
        report = RunReport(state=RunState.SUCCEEDED)
        return report

    monkeypatch.setattr("mayfly.app.Mayfly.up", up)
    return calls


def raise_from_up(monkeypatch, error):
    def up(self, config, *args, **kwargs):
        raise error

    monkeypatch.setattr("mayfly.app.Mayfly.up", up)


def test_up_flags_reach_config(cli_env, fake_up):
    exit_code = cli_main.main(
        [
            "up",
            "--region",
            "eu-west-1",
            "--ttl",
            "30m",
            "--instance-type",
            "t3.small",
            "--tailscale-auth-key",
            "auth",
            "--tailscale-api-key",
            "api",
            "--tailscale-tailnet",
            "example.com",
        ]
    )

    assert exit_code == 0
    [config] = fake_up
    assert config.region == "eu-west-1"
    assert config.ttl == 1800.0
    assert config.instance_type == "t3.small"
    assert config.tailscale_auth_key == "auth"
    assert config.tailscale_api_key == "api"
    assert config.tailscale_tailnet == "example.com"


def test_bare_number_ttl_is_seconds(cli_env, fake_up):
    assert cli_main.main(["up", "--ttl", "90"]) == 0

    [config] = fake_up
    assert config.ttl == 90.0


def test_numeric_flag_values_stay_text(cli_env, fake_up):
    assert cli_main.main(["up", "--tailscale-tailnet", "12345"]) == 0

    [config] = fake_up
    assert config.tailscale_tailnet == "12345"


def test_unset_flags_fall_back_to_defaults(cli_env, fake_up):
    assert cli_main.main(["up"]) == 0

    [config] = fake_up
    assert config.region == "us-east-1"
    assert config.ttl == 3600.0
    assert config.instance_type == "t3.micro"
    assert config.tailscale_auth_key == ""


def test_missing_keys_exit_with_config_error(cli_env, capsys):
    exit_code = cli_main.main(["up"])

    assert exit_code == 2
    assert "tailscale-auth-key is required" in capsys.readouterr().err


def test_invalid_ttl_exits_with_config_error(cli_env, capsys):
    exit_code = cli_main.main(["up", "--ttl", "forever"])

    assert exit_code == 2
    assert "Invalid duration" in capsys.readouterr().err


def test_successful_run_exits_zero(cli_env, fake_up, monkeypatch):
    monkeypatch.setenv("TAILSCALE_AUTH_KEY", "auth")
    monkeypatch.setenv("TAILSCALE_API_KEY", "api")
    monkeypatch.setenv("TAILSCALE_TAILNET", "example.com")

    exit_code = cli_main.main(["up", "--ttl", "90s", "--region", "us-west-2"])

    assert exit_code == 0
    [config] = fake_up
    assert config.ttl == 90.0
    assert config.region == "us-west-2"
    assert config.tailscale_tailnet == "example.com"


def test_dotenv_file_in_working_directory_is_loaded(cli_env, fake_up, monkeypatch):
    (cli_env / ".env").write_text(
        "TAILSCALE_AUTH_KEY=dotenv-auth\n"
        "TAILSCALE_API_KEY=dotenv-api\n"
        "TAILSCALE_TAILNET=dotenv.example.com\n"
        "MAYFLY_TTL=5m\n"
    )
    monkeypatch.setenv("TAILSCALE_TAILNET", "shell.example.com")

    assert cli_main.main(["up"]) == 0

    [config] = fake_up
    assert config.tailscale_auth_key == "dotenv-auth"
    assert config.tailscale_tailnet == "shell.example.com"
    assert config.ttl == 300.0


def test_credentials_failure_prints_setup_hint(cli_env, monkeypatch, capsys):
    error = ProvisionError("Provisioning failed")
    error.__cause__ = ProviderCredentialsError("Unable to locate credentials")
    raise_from_up(monkeypatch, error)

    exit_code = cli_main.main(["up"])

    assert exit_code == 1
    assert "AWS credentials not found" in capsys.readouterr().err


def test_permission_failure_lists_required_actions(cli_env, monkeypatch, capsys):
    error = ProvisionError("Provisioning failed")
    error.__cause__ = ProviderAPIError("not authorized", error_code="UnauthorizedOperation")
    raise_from_up(monkeypatch, error)

    exit_code = cli_main.main(["up"])

    err = capsys.readouterr().err
    assert exit_code == 1
    assert "Insufficient IAM permissions" in err
    assert "ec2:RunInstances" in err


def test_missing_default_vpc_prints_fix(cli_env, monkeypatch, capsys):
    error = ProvisionError("Provisioning failed")
    error.__cause__ = ValueError("No default VPC found in region 'us-east-1'")
    raise_from_up(monkeypatch, error)

    assert cli_main.main(["up"]) == 1
    assert "aws ec2 create-default-vpc" in capsys.readouterr().err


def test_generic_provision_failure(cli_env, monkeypatch, capsys):
    raise_from_up(monkeypatch, ProvisionError("instance terminated while starting"))

    assert cli_main.main(["up"]) == 1
    assert "Provisioning failed: instance terminated while starting" in capsys.readouterr().err


def test_debug_mode_reraises(cli_env, monkeypatch):
    monkeypatch.setenv("MAYFLY_DEBUG", "1")
    raise_from_up(monkeypatch, ConfigError("ttl must be positive"))

    with pytest.raises(ConfigError):
        cli_main.main(["up"])

    cli_main.configure_logging.assert_called_once_with(debug=True)
