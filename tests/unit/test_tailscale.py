"""Tests for the Tailscale control plane client."""

from unittest.mock import MagicMock

import pytest
import requests

from mayfly.errors import RegistrationError
from mayfly.providers.tailscale.client import TailscaleRegistrar


def make_response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def registrar(session) -> TailscaleRegistrar:
    return TailscaleRegistrar(api_key="tskey-api-test", tailnet="example.com", session=session)


DEVICES = {
    "devices": [
        {"id": "d1", "hostname": "laptop"},
        {"id": "d2", "hostname": "mayfly-exit"},
        {"id": "d3", "hostname": "mayfly-exit-1"},
    ]
}


def test_session_uses_api_key_as_basic_auth_user(registrar, session):
    assert session.auth == ("tskey-api-test", "")


def test_list_devices(registrar, session):
    session.request.return_value = make_response(payload=DEVICES)

    devices = registrar.list_devices()

    assert [d.id for d in devices] == ["d1", "d2", "d3"]
    session.request.assert_called_once_with(
        "GET",
        "https://api.tailscale.com/api/v2/tailnet/example.com/devices",
        timeout=30,
    )


def test_find_device_returns_first_prefix_match(registrar, session):
    session.request.return_value = make_response(payload=DEVICES)

    assert registrar.find_device("mayfly-exit") == "d2"


def test_find_device_returns_none_without_match(registrar, session):
    session.request.return_value = make_response(
        payload={"devices": [{"id": "d1", "hostname": "laptop"}]}
    )

    assert registrar.find_device("mayfly-exit") is None


def test_find_device_skips_devices_without_hostname(registrar, session):
    session.request.return_value = make_response(
        payload={
            "devices": [
                {"id": "d1", "hostname": None},
                {"id": "d2"},
                {"id": "d3", "hostname": "mayfly-exit"},
            ]
        }
    )

    assert registrar.find_device("mayfly-exit") == "d3"


def test_find_device_empty_tailnet(registrar, session):
    session.request.return_value = make_response(payload={"devices": []})

    assert registrar.find_device("mayfly-exit") is None


def test_approve_exit_node_posts_default_routes(registrar, session):
    session.request.return_value = make_response()

    registrar.approve_exit_node("d2")

    session.request.assert_called_once_with(
        "POST",
        "https://api.tailscale.com/api/v2/device/d2/routes",
        timeout=30,
        json={"routes": ["0.0.0.0/0", "::/0"]},
    )


def test_remove_device_sends_delete(registrar, session):
    session.request.return_value = make_response()

    registrar.remove_device("d2")

    session.request.assert_called_once_with(
        "DELETE", "https://api.tailscale.com/api/v2/device/d2", timeout=30
    )


@pytest.mark.parametrize("status_code", [401, 403, 404, 500])
def test_error_status_raises_registration_error(registrar, session, status_code):
    session.request.return_value = make_response(status_code=status_code, text="nope")

    with pytest.raises(RegistrationError, match=str(status_code)):
        registrar.remove_device("d2")


def test_transport_error_raises_registration_error(registrar, session):
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(RegistrationError, match="connection refused"):
        registrar.find_device("mayfly-exit")


def test_malformed_device_list_raises_registration_error(registrar, session):
    session.request.return_value = make_response(payload={"devices": [{"hostname": "x"}]})

    with pytest.raises(RegistrationError, match="Unexpected device list response"):
        registrar.list_devices()


def test_custom_base_url_is_normalized(session):
    registrar = TailscaleRegistrar("key", "-", session=session, base_url="http://localhost:8080/api/v2/")
    session.request.return_value = make_response()

    registrar.remove_device("d9")

    assert session.request.call_args.args[1] == "http://localhost:8080/api/v2/device/d9"
