"""
JSON-RPC envelopes and HTTP payload schemas.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, Field


JSONRPC_VERSION = "2.0"

# Used when a synthesized error has no request id to echo.
FALLBACK_ID = 1


# =============================================================================
# Inbound Request
# =============================================================================

@dataclass(frozen=True)
class RpcRequest:
    """
    Inbound JSON-RPC request as received by the gateway.

    ``payload`` is the parsed body exactly as the caller sent it (any JSON
    value). ``raw`` keeps the original bytes so that bodies which are not
    JSON at all can still be relayed untouched.
    """
    payload: Any = None
    raw: bytes = b""
    is_json: bool = True

    @classmethod
    def from_body(cls, body: bytes) -> "RpcRequest":
        """Parse a request body leniently; never raises."""
        try:
            payload = json.loads(body)
        except ValueError:
            return cls(payload=None, raw=body, is_json=False)
        return cls(payload=payload, raw=body, is_json=True)

    @classmethod
    def build(cls, method: str, params: Optional[List[Any]] = None, id: Any = 1) -> "RpcRequest":
        """Create a request from its parts."""
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": id,
            "method": method,
            "params": params if params is not None else [],
        }
        return cls(payload=payload, raw=json.dumps(payload).encode("utf-8"))

    @property
    def is_object(self) -> bool:
        return isinstance(self.payload, dict)

    @property
    def method(self) -> Optional[str]:
        """RPC method name, or None if absent or not a string."""
        if not self.is_object:
            return None
        method = self.payload.get("method")
        return method if isinstance(method, str) else None

    @property
    def has_id(self) -> bool:
        return self.is_object and "id" in self.payload

    @property
    def id(self) -> Any:
        """Request id, or None if the request carries none."""
        if not self.is_object:
            return None
        return self.payload.get("id")

    @property
    def params(self) -> List[Any]:
        """Positional params; anything else reads as an empty list."""
        if not self.is_object:
            return []
        params = self.payload.get("params")
        return list(params) if isinstance(params, list) else []

    def first_param(self) -> Any:
        params = self.params
        return params[0] if params else None

    def response_id(self) -> Any:
        """Id to echo in a synthesized response."""
        return self.id if self.has_id else FALLBACK_ID

    def to_wire(self) -> bytes:
        """
        Serialize to the compact JSON wire form sent upstream.

        Bodies that are not JSON, or whose strings cannot be encoded as
        UTF-8 (lone surrogate escapes), are sent as the original bytes.
        """
        if not self.is_json:
            return self.raw
        try:
            return json.dumps(
                self.payload,
                separators=(",", ":"),
                ensure_ascii=False,
            ).encode("utf-8")
        except UnicodeEncodeError:
            return self.raw


# =============================================================================
# Outbound Envelopes
# =============================================================================

class RpcResponse(BaseModel):
    """Successful JSON-RPC response."""
    jsonrpc: str = JSONRPC_VERSION
    id: Any = Field(..., description="Echo of the request id")
    result: Any = None


class RpcErrorBody(BaseModel):
    """JSON-RPC error object."""
    code: int
    message: str


class RpcError(BaseModel):
    """JSON-RPC error response."""
    jsonrpc: str = JSONRPC_VERSION
    id: Any = Field(..., description="Echo of the request id, or a fallback")
    error: RpcErrorBody

    @classmethod
    def create(cls, id: Any, code: int, message: str) -> "RpcError":
        return cls(id=id, error=RpcErrorBody(code=code, message=message))


@dataclass(frozen=True)
class HttpResult:
    """Status, body and content type handed back to the HTTP layer."""
    status_code: int
    body: bytes
    media_type: str = "application/json"

    @classmethod
    def from_model(cls, status_code: int, model: BaseModel) -> "HttpResult":
        return cls(
            status_code=status_code,
            body=model.model_dump_json().encode("utf-8"),
        )

    def json(self) -> Any:
        return json.loads(self.body)


# =============================================================================
# Health & Info Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    message: str


class ServiceInfo(BaseModel):
    """Root endpoint payload."""
    name: str
    version: str
    status: str
    endpoints: dict
    mocked_methods: List[str] = []
    blocked_methods: List[str] = []
