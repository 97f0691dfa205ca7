"""Tests for RunConfig validation."""

from dataclasses import replace

import pytest

from mayfly.errors import ConfigError


def test_valid_config_passes(run_config):
    run_config.validate()


@pytest.mark.parametrize(
    ("field", "message"),
    [
        ("region", "region is required"),
        ("instance_type", "instance-type is required"),
        ("tailscale_auth_key", "tailscale-auth-key is required"),
        ("tailscale_api_key", "tailscale-api-key is required"),
        ("tailscale_tailnet", "tailscale-tailnet is required"),
    ],
)
@pytest.mark.parametrize("value", ["", "   "])
def test_empty_field_is_rejected(run_config, field, message, value):
    config = replace(run_config, **{field: value})

    with pytest.raises(ConfigError, match=message):
        config.validate()


@pytest.mark.parametrize("ttl", [0, 0.0, -1, -3600.0])
def test_non_positive_ttl_is_rejected(run_config, ttl):
    with pytest.raises(ConfigError, match="ttl must be positive"):
        replace(run_config, ttl=ttl).validate()


@pytest.mark.parametrize("ttl", ["1h", None, True])
def test_non_numeric_ttl_is_rejected(run_config, ttl):
    with pytest.raises(ConfigError, match="ttl must be a number"):
        replace(run_config, ttl=ttl).validate()


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)


def test_repr_hides_secrets(run_config):
    text = repr(run_config)

    assert "tskey-auth-test" not in text
    assert "tskey-api-test" not in text
    assert "us-east-1" in text
