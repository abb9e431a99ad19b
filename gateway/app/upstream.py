"""
Upstream forwarding for the RPC gateway.
Relays pass-through requests to the real node and hands its answer back unchanged.
"""

import logging
import re
from dataclasses import dataclass
from http.cookiejar import DefaultCookiePolicy
from typing import Optional

import requests

from . import reporting
from .config import GatewaySettings
from .errors import UpstreamTransportError
from .schemas import HttpResult, RpcError, RpcRequest

logger = logging.getLogger(__name__)

PROXY_ERROR_CODE = -32000
PROXY_ERROR_MESSAGE = "Proxy error"


# =============================================================================
# Endpoint
# =============================================================================

@dataclass(frozen=True)
class UpstreamEndpoint:
    """Where pass-through requests are sent."""
    base_url: str
    api_key: Optional[str] = None
    strip_prefix: str = "/rpc"

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "UpstreamEndpoint":
        return cls(
            base_url=settings.upstream_url,
            api_key=settings.upstream_api_key,
        )

    @property
    def target(self) -> str:
        """Base URL with the API key appended as a path segment."""
        if not self.api_key:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{self.api_key}"

    @property
    def display_url(self) -> str:
        """Target URL safe for logs."""
        if not self.api_key:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/***"

    def rewrite_path(self, path: str) -> str:
        """Strip the gateway's path prefix (``^/rpc`` -> ``''``)."""
        if not self.strip_prefix:
            return path
        return re.sub(f"^{re.escape(self.strip_prefix)}", "", path, count=1)

    def url_for(self, path: str = "") -> str:
        """Upstream URL for an inbound ``path``."""
        rest = self.rewrite_path(path)
        if not rest:
            return self.target
        return self.target.rstrip("/") + "/" + rest.lstrip("/")


# =============================================================================
# Forwarder
# =============================================================================

class Forwarder:
    """
    Relays requests to the upstream node.

    The upstream's status code and body are returned byte for byte; only
    transport failures are answered locally. Failed calls are never retried.
    """

    def __init__(
        self,
        endpoint: UpstreamEndpoint,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize forwarder.

        Args:
            endpoint: Upstream node location
            session: HTTP session to reuse connections across calls
            timeout: Seconds to wait for the upstream; None waits forever
        """
        self.endpoint = endpoint
        self.session = session or requests.Session()
        # Upstream cookies must not carry over from one caller to the next
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "Forwarder":
        return cls(
            UpstreamEndpoint.from_settings(settings),
            timeout=settings.upstream_timeout,
        )

    def forward(self, request: RpcRequest, path: str = "/rpc") -> HttpResult:
        """Send ``request`` upstream and relay the answer."""
        try:
            response = self._send(request, path)
        except UpstreamTransportError as e:
            reporting.log_transport_error(request, e)
            return self.proxy_error(request)

        reporting.log_relay(request, response.status_code)

        return HttpResult(
            status_code=response.status_code,
            body=response.content,
            media_type=response.headers.get("Content-Type", "application/json"),
        )

    def _send(self, request: RpcRequest, path: str) -> requests.Response:
        body = request.to_wire()
        url = self.endpoint.url_for(path)
        logger.debug(f"Forwarding {len(body)} bytes to {self.endpoint.display_url}")

        try:
            return self.session.post(
                url,
                data=body,
                headers={
                    "Content-Type": "application/json",
                    "Content-Length": str(len(body)),
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamTransportError(self.endpoint.display_url, e) from e

    @staticmethod
    def proxy_error(request: RpcRequest) -> HttpResult:
        """HTTP 500 JSON-RPC error returned when the upstream is unreachable."""
        error = RpcError.create(request.response_id(), PROXY_ERROR_CODE, PROXY_ERROR_MESSAGE)
        return HttpResult.from_model(500, error)

    def close(self) -> None:
        self.session.close()
