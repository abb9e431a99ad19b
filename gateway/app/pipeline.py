"""
Per-request pipeline: classify, then answer locally or forward upstream.
"""

from typing import Optional

from . import reporting
from .config import GatewaySettings
from .rules import Reject, Respond, RuleTable, classify, default_rules
from .schemas import HttpResult, RpcRequest
from .upstream import Forwarder


class RpcPipeline:
    """
    Handles one inbound JSON-RPC call at a time.

    Holds only read-only state, so a single instance serves concurrent
    requests.
    """

    def __init__(self, rules: RuleTable, forwarder: Forwarder):
        self.rules = rules
        self.forwarder = forwarder

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "RpcPipeline":
        return cls(default_rules(settings), Forwarder.from_settings(settings))

    def answer_locally(
        self,
        request: RpcRequest,
        path: str = "/rpc",
        http_method: str = "POST",
    ) -> Optional[HttpResult]:
        """
        Classify ``request`` and build the mocked or blocked answer.

        Never blocks on I/O.

        Returns:
            HttpResult, or None when the request must be forwarded
        """
        reporting.log_inbound(http_method, path, request)

        outcome = classify(request, self.rules)

        if isinstance(outcome, Respond):
            return HttpResult.from_model(200, outcome.response)

        if isinstance(outcome, Reject):
            return HttpResult.from_model(outcome.status_code, outcome.error)

        return None

    def handle(self, request: RpcRequest, path: str = "/rpc", http_method: str = "POST") -> HttpResult:
        """Answer ``request``; the upstream is contacted only on pass-through."""
        result = self.answer_locally(request, path, http_method)
        if result is None:
            result = self.forwarder.forward(request, path)
        return result


# =============================================================================
# Module-level instance
# =============================================================================

_pipeline: Optional[RpcPipeline] = None


def get_pipeline() -> RpcPipeline:
    """Get global pipeline instance built from the environment."""
    global _pipeline
    if _pipeline is None:
        _pipeline = RpcPipeline.from_settings(GatewaySettings.from_env())
    return _pipeline


async def provide_pipeline() -> RpcPipeline:
    """
    FastAPI dependency for the pipeline.

    Declared async so resolving it does not take a thread pool slot.
    """
    return get_pipeline()


def reset_pipeline() -> None:
    """Drop the global instance so the next call rebuilds it."""
    global _pipeline
    if _pipeline is not None:
        _pipeline.forwarder.close()
    _pipeline = None
