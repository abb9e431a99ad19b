"""
Exceptions raised by the RPC gateway.
"""


class GatewayError(Exception):
    """Base gateway error."""
    pass


class ConfigError(GatewayError):
    """Invalid configuration value."""
    pass


class UpstreamTransportError(GatewayError):
    """Upstream node could not be reached or did not answer."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"Upstream request to {url} failed: {type(cause).__name__}")
        self.url = url
        self.cause = cause
