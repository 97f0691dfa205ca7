"""Pytest configuration and fixtures for mayfly tests."""

import os
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from mayfly.core.config import RunConfig  # noqa: E402
from mayfly.core.state import StateStore  # noqa: E402


@pytest.fixture(autouse=True)
def cleanup_mayfly_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove mayfly settings inherited from the developer's shell.

    Setting before deleting makes monkeypatch restore the original state even
    when a test (or a loaded .env file) sets the variable.

    Parameters
    ----------
    monkeypatch : pytest.MonkeyPatch
        Restores the environment after the test
    """
    for name in (
        "AWS_REGION",
        "MAYFLY_TTL",
        "MAYFLY_INSTANCE_TYPE",
        "MAYFLY_DEBUG",
        "TAILSCALE_AUTH_KEY",
        "TAILSCALE_API_KEY",
        "TAILSCALE_TAILNET",
    ):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Fixture to set AWS credentials for testing with proper cleanup.

    Sets mock AWS credentials in environment variables for the duration of the test,
    then restores the original environment state.

    Yields
    ------
    None
        Control back to test after setting credentials
    """
    names = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_DEFAULT_REGION")
    old_values = {name: os.environ.get(name) for name in names}

    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

    yield

    for name, value in old_values.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``$MAYFLY_DIR`` at a temporary directory.

    Returns
    -------
    Path
        Directory the state file will be written to (not yet created)
    """
    directory = tmp_path / "mayfly-home"
    monkeypatch.setenv("MAYFLY_DIR", str(directory))
    return directory


@pytest.fixture
def state_store(state_dir: Path) -> StateStore:
    return StateStore(state_dir / "state.json")


@pytest.fixture
def run_config() -> RunConfig:
    """Valid configuration with a short TTL."""
    return RunConfig(
        region="us-east-1",
        ttl=0.05,
        instance_type="t3.micro",
        tailscale_auth_key="tskey-auth-test",
        tailscale_api_key="tskey-api-test",
        tailscale_tailnet="example.com",
    )
