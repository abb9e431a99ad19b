"""
Tests for upstream forwarding.
"""

import json

import pytest
import requests
import responses

from gateway.app.errors import UpstreamTransportError
from gateway.app.schemas import RpcRequest
from gateway.app.upstream import Forwarder, UpstreamEndpoint


UPSTREAM_URL = "https://rpc.example.com"


# =============================================================================
# Endpoint
# =============================================================================

class TestUpstreamEndpoint:
    """Tests for URL construction and path rewriting."""

    def test_rpc_prefix_is_stripped(self, endpoint):
        assert endpoint.rewrite_path("/rpc") == ""
        assert endpoint.rewrite_path("/rpc/v2") == "/v2"

    def test_only_leading_prefix_is_stripped(self, endpoint):
        assert endpoint.rewrite_path("/other/rpc") == "/other/rpc"

    def test_custom_prefix(self):
        endpoint = UpstreamEndpoint(base_url=UPSTREAM_URL, strip_prefix="/gateway")
        assert endpoint.rewrite_path("/gateway/x") == "/x"

    def test_url_for_root_path(self, endpoint):
        assert endpoint.url_for("/rpc") == UPSTREAM_URL

    def test_url_for_sub_path(self, endpoint):
        assert endpoint.url_for("/rpc/archive") == UPSTREAM_URL + "/archive"

    def test_api_key_is_appended(self):
        endpoint = UpstreamEndpoint(base_url="https://mainnet.infura.io/v3/", api_key="secret")

        assert endpoint.target == "https://mainnet.infura.io/v3/secret"
        assert endpoint.url_for("/rpc") == "https://mainnet.infura.io/v3/secret"

    def test_display_url_hides_api_key(self):
        endpoint = UpstreamEndpoint(base_url="https://mainnet.infura.io/v3", api_key="secret")
        assert "secret" not in endpoint.display_url


# =============================================================================
# Forwarder
# =============================================================================

class TestForwarder:
    """Tests for relaying calls to the upstream node."""

    def test_body_and_headers_are_forwarded(self, forwarder, mock_upstream, eth_call_payload):
        def callback(request):
            assert json.loads(request.body) == eth_call_payload
            assert request.headers["Content-Type"] == "application/json"
            assert int(request.headers["Content-Length"]) == len(request.body)
            return (200, {}, '{"jsonrpc":"2.0","id":4,"result":"0x01"}')

        mock_upstream.add_callback(responses.POST, UPSTREAM_URL, callback=callback)

        result = forwarder.forward(RpcRequest.build(
            eth_call_payload["method"], eth_call_payload["params"], id=4,
        ))

        assert result.status_code == 200
        assert len(mock_upstream.calls) == 1

    def test_inbound_body_is_sent_unchanged(self, forwarder, mock_upstream):
        body = b'{"jsonrpc":"2.0","id":"x-1","method":"eth_call","params":[{"to":"0x1"},"latest"],"extra":{"b":1,"a":2}}'
        mock_upstream.add(responses.POST, UPSTREAM_URL, json={"jsonrpc": "2.0", "id": "x-1", "result": "0x"})

        forwarder.forward(RpcRequest.from_body(body))

        assert mock_upstream.calls[0].request.body == body

    def test_response_is_relayed_byte_for_byte(self, forwarder, mock_upstream):
        upstream_body = b'{"jsonrpc": "2.0",  "id": 4, "result": "0xdeadbeef"}\n'
        mock_upstream.add(
            responses.POST,
            UPSTREAM_URL,
            body=upstream_body,
            status=200,
            content_type="application/json",
        )

        result = forwarder.forward(RpcRequest.build("eth_call", [], id=4))

        assert result.status_code == 200
        assert result.body == upstream_body
        assert result.media_type.startswith("application/json")

    def test_upstream_error_is_relayed_as_is(self, forwarder, mock_upstream):
        upstream_body = b'{"jsonrpc":"2.0","id":4,"error":{"code":-32005,"message":"rate limited"}}'
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=upstream_body, status=429)

        result = forwarder.forward(RpcRequest.build("eth_call", [], id=4))

        assert result.status_code == 429
        assert result.body == upstream_body

    def test_non_json_body_is_relayed_raw(self, forwarder, mock_upstream):
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=b"bad request", status=400, content_type="text/plain")

        result = forwarder.forward(RpcRequest.from_body(b"{not json"))

        assert mock_upstream.calls[0].request.body == b"{not json"
        assert result.status_code == 400
        assert result.body == b"bad request"
        assert result.media_type.startswith("text/plain")

    def test_sub_path_is_forwarded(self, forwarder, mock_upstream):
        mock_upstream.add(responses.POST, UPSTREAM_URL + "/archive", json={"jsonrpc": "2.0", "id": 1, "result": "0x"})

        result = forwarder.forward(RpcRequest.build("eth_call"), "/rpc/archive")

        assert result.status_code == 200

    def test_lone_surrogate_body_is_relayed_raw(self, forwarder, mock_upstream):
        body = b'{"jsonrpc":"2.0","id":7,"method":"eth_call","params":["\\ud800"]}'
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=b'{"jsonrpc":"2.0","id":7,"result":"0x"}')

        result = forwarder.forward(RpcRequest.from_body(body))

        assert mock_upstream.calls[0].request.body == body
        assert result.status_code == 200
        assert result.json()["id"] == 7

    def test_upstream_cookies_are_not_replayed(self, forwarder, mock_upstream):
        mock_upstream.add(
            responses.POST,
            UPSTREAM_URL,
            json={"jsonrpc": "2.0", "id": 1, "result": "0x"},
            headers={"Set-Cookie": "AWSALB=first-caller-session; Path=/"},
        )
        mock_upstream.add(responses.POST, UPSTREAM_URL, json={"jsonrpc": "2.0", "id": 2, "result": "0x"})

        forwarder.forward(RpcRequest.build("eth_call", id=1))
        forwarder.forward(RpcRequest.build("eth_gasPrice", id=2))

        assert "Cookie" not in mock_upstream.calls[1].request.headers
        assert len(forwarder.session.cookies) == 0


class TestTransportFailure:
    """Tests for unreachable upstreams."""

    @pytest.mark.parametrize("exc", [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.Timeout("timed out"),
        requests.exceptions.SSLError("bad certificate"),
    ])
    def test_transport_error_becomes_proxy_error(self, forwarder, mock_upstream, exc):
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=exc)

        result = forwarder.forward(RpcRequest.build("eth_call", [], id=4))

        assert result.status_code == 500
        assert result.json() == {
            "jsonrpc": "2.0",
            "id": 4,
            "error": {"code": -32000, "message": "Proxy error"},
        }

    def test_failed_call_is_not_retried(self, forwarder, mock_upstream):
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=requests.exceptions.ConnectionError("refused"))

        forwarder.forward(RpcRequest.build("eth_call"))

        assert len(mock_upstream.calls) == 1

    def test_unregistered_upstream_is_unreachable(self, forwarder, mock_upstream):
        result = forwarder.forward(RpcRequest.build("eth_call", [], id="abc"))

        assert result.status_code == 500
        assert result.json()["id"] == "abc"

    def test_fallback_id_without_request_id(self, forwarder, mock_upstream):
        result = forwarder.forward(RpcRequest.from_body(b"{not json"))

        assert result.status_code == 500
        assert result.json()["id"] == 1

    def test_send_wraps_transport_errors(self, forwarder, mock_upstream):
        mock_upstream.add(responses.POST, UPSTREAM_URL, body=requests.exceptions.ConnectionError("refused"))

        with pytest.raises(UpstreamTransportError) as exc_info:
            forwarder._send(RpcRequest.build("eth_call"), "/rpc")

        assert isinstance(exc_info.value.cause, requests.exceptions.ConnectionError)

    def test_from_settings_uses_timeout(self, settings):
        forwarder = Forwarder.from_settings(settings)
        try:
            assert forwarder.timeout == 5.0
            assert forwarder.endpoint.base_url == UPSTREAM_URL
        finally:
            forwarder.close()
