"""Tests for client.py: authenticated client and device resources."""

import httpx
import pytest

from smartthings_graph.client import SmartThingsClient, new_http_client
from smartthings_graph.endpoints import ENDPOINTS_URI
from smartthings_graph.errors import APIError, DecodeError, EmptyResponseError, NetworkError
from smartthings_graph.models import CapabilityReading, DeviceCommand, DeviceSummary, Endpoint

BASE = "https://graph.api.smartthings.com/api/smartapps/installations/abc"


def _client(mock_http, routes, requests=None):
    """SmartThingsClient answering GETs from a {path suffix: (status, body)} table."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        path = str(request.url)[len(BASE):]
        if path not in routes:
            return httpx.Response(404, text="not found")
        status, body = routes[path]
        return httpx.Response(status, text=body) if isinstance(body, str) else httpx.Response(status, json=body)

    return SmartThingsClient(mock_http(handler), BASE)


class TestListDevices:
    """Test SmartThingsClient.list_devices."""

    def test_single_array(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [{"id": "1", "name": "n", "displayName": "d"}])})
        assert client.list_devices() == [DeviceSummary(id="1", name="n", display_name="d")]

    def test_double_wrapped_array(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [[{"id": "1", "name": "n", "displayName": "d"}]])})
        assert client.list_devices() == [DeviceSummary(id="1", name="n", display_name="d")]

    def test_only_first_wrapped_list_is_used(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [[{"id": "1"}], [{"id": "2"}]])})
        assert [d.id for d in client.list_devices()] == ["1"]

    def test_empty_list(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [])})
        assert client.list_devices() == []

    def test_null_names_become_empty(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [{"id": "1", "name": None, "displayName": None}])})
        device = client.list_devices()[0]
        assert device.name == ""
        assert device.display_name == ""

    def test_wrong_shape_raises_decode_error(self, mock_http):
        client = _client(mock_http, {"/devices": (200, {"devices": []})})
        with pytest.raises(DecodeError):
            client.list_devices()

    def test_invalid_json_raises_decode_error(self, mock_http):
        client = _client(mock_http, {"/devices": (200, "<html>")})
        with pytest.raises(DecodeError):
            client.list_devices()

    def test_devices_are_read_only(self, mock_http):
        client = _client(mock_http, {"/devices": (200, [{"id": "1"}])})
        device = client.list_devices()[0]
        with pytest.raises(Exception):
            device.name = "changed"


class TestGetDevice:
    """Test SmartThingsClient.get_device."""

    def test_attributes_keep_json_types(self, mock_http):
        client = _client(mock_http, {"/devices/42": (200, {
            "id": "42",
            "name": "Multipurpose Sensor",
            "displayName": "Front Door",
            "attributes": {
                "temperature": 71,
                "battery": 88.5,
                "contact": "closed",
                "acceleration": None,
                "threeAxis": {"x": 1, "y": -2, "z": 1003},
                "tags": ["a", "b"],
                "tamper": False,
            },
        })})

        device = client.get_device("42")

        assert device.id == "42"
        assert device.display_name == "Front Door"
        assert device.attributes["temperature"] == 71
        assert device.attributes["battery"] == 88.5
        assert device.attributes["contact"] == "closed"
        assert device.attributes["acceleration"] is None
        assert device.attributes["threeAxis"] == {"x": 1, "y": -2, "z": 1003}
        assert device.attributes["tags"] == ["a", "b"]
        assert device.attributes["tamper"] is False

    def test_missing_attributes_default_to_empty(self, mock_http):
        client = _client(mock_http, {"/devices/42": (200, {"id": "42"})})
        assert client.get_device("42").attributes == {}

    def test_not_found_raises_api_error(self, mock_http):
        client = _client(mock_http, {})
        with pytest.raises(APIError) as exc_info:
            client.get_device("missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "not found"


class TestGetDeviceCommands:
    """Test SmartThingsClient.get_device_commands."""

    def test_commands_with_params(self, mock_http):
        client = _client(mock_http, {"/devices/42/commands": (200, [
            {"command": "on", "params": {}},
            {"command": "setLevel", "params": {"level": 50, "rate": None}},
        ])})

        commands = client.get_device_commands("42")

        assert commands == [
            DeviceCommand(name="on", params={}),
            DeviceCommand(name="setLevel", params={"level": 50, "rate": None}),
        ]

    def test_name_and_parameters_aliases(self, mock_http):
        client = _client(mock_http, {"/devices/42/commands": (200, [{"name": "off", "parameters": {"delay": 5}}])})
        assert client.get_device_commands("42") == [DeviceCommand(name="off", params={"delay": 5})]


class TestCapabilities:
    """Test capability sub-path access."""

    def test_raw_body(self, mock_http):
        client = _client(mock_http, {"/temperature": (200, '[{"name":"Front Door","value":71}]')})
        assert client.get_capability_raw("temperature") == b'[{"name":"Front Door","value":71}]'

    def test_decoded_json(self, mock_http):
        client = _client(mock_http, {"/battery": (200, [{"name": "Front Door", "value": 88}])})
        assert client.get_capability("battery") == [{"name": "Front Door", "value": 88}]

    def test_typed_readings(self, mock_http):
        client = _client(mock_http, {"/temperature": (200, [{"name": "Front Door", "value": 71}])})
        assert client.get_capability_readings("/temperature") == [CapabilityReading(name="Front Door", value=71)]

    def test_server_error_raises_api_error(self, mock_http):
        client = _client(mock_http, {"/battery": (500, "boom")})
        with pytest.raises(APIError) as exc_info:
            client.get_capability_raw("battery")
        assert exc_info.value.status_code == 500


class TestTransport:
    """Test request construction and transport failures."""

    def test_requests_go_to_endpoint_paths(self, mock_http):
        requests = []
        client = _client(mock_http, {
            "/devices": (200, []),
            "/devices/7": (200, {"id": "7"}),
            "/devices/7/commands": (200, []),
        }, requests)

        client.list_devices()
        client.get_device("7")
        client.get_device_commands("7")

        assert [str(r.url) for r in requests] == [
            f"{BASE}/devices",
            f"{BASE}/devices/7",
            f"{BASE}/devices/7/commands",
        ]

    def test_trailing_slash_in_endpoint(self, mock_http):
        requests = []
        client = _client(mock_http, {"/devices": (200, [])}, requests)
        client = SmartThingsClient(client.client, Endpoint(uri=BASE + "/"))
        client.list_devices()
        assert str(requests[0].url) == f"{BASE}/devices"

    def test_network_error(self, mock_http):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = SmartThingsClient(mock_http(handler), BASE)
        with pytest.raises(NetworkError):
            client.list_devices()

    def test_authorization_header(self, token):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        with new_http_client(token, transport=httpx.MockTransport(handler)) as http_client:
            SmartThingsClient(http_client, BASE).list_devices()

        assert seen[0].headers["authorization"] == "Bearer access"
        assert seen[0].headers["accept"] == "application/json"


class TestConnect:
    """Test SmartThingsClient.connect."""

    def test_resolves_endpoint(self, token):
        def handler(request):
            if str(request.url) == ENDPOINTS_URI:
                return httpx.Response(200, json=[{"uri": BASE}])
            if str(request.url) == f"{BASE}/devices":
                return httpx.Response(200, json=[{"id": "1", "name": "n", "displayName": "d"}])
            return httpx.Response(404)

        with SmartThingsClient.connect(token, transport=httpx.MockTransport(handler)) as client:
            assert client.endpoint.uri == BASE
            assert [d.id for d in client.list_devices()] == ["1"]

    def test_resolution_failure_propagates(self, token):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="[]"))
        with pytest.raises(EmptyResponseError):
            SmartThingsClient.connect(token, transport=transport)
