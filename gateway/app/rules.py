"""
Request classification for the RPC gateway.

Each inbound request is matched against an ordered rule table. The first
rule whose method equals the request's method decides what happens:

- ``Mock``: answer locally with a JSON-RPC result
- ``Block``: answer locally with a JSON-RPC error and a chosen HTTP status
- ``PassThrough``: hand the request to the upstream forwarder

Requests that match no rule pass through.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from web3 import Web3

from . import reporting
from .config import GatewaySettings
from .schemas import RpcError, RpcRequest, RpcResponse


# Generic server error code used by Ethereum nodes
SERVER_ERROR = -32000


# =============================================================================
# Rule Actions
# =============================================================================

@dataclass(frozen=True)
class Mock:
    """Answer with ``result``; a callable is invoked with the request."""
    result: Union[Any, Callable[[RpcRequest], Any]]

    def resolve(self, request: RpcRequest) -> Any:
        if callable(self.result):
            return self.result(request)
        return self.result


@dataclass(frozen=True)
class Block:
    """Refuse the call with a JSON-RPC error and HTTP ``status_code``."""
    status_code: int
    code: int
    message: str


@dataclass(frozen=True)
class PassThrough:
    """Forward the call upstream."""
    pass


Action = Union[Mock, Block, PassThrough]


@dataclass(frozen=True)
class Rule:
    method: str
    action: Action


RuleTable = Tuple[Rule, ...]


# =============================================================================
# Outcomes
# =============================================================================

@dataclass(frozen=True)
class Respond:
    response: RpcResponse

    kind = "respond"


@dataclass(frozen=True)
class Reject:
    status_code: int
    error: RpcError

    kind = "reject"


@dataclass(frozen=True)
class PassThroughOutcome:
    """Outcome of a PassThrough rule, or of no rule matching."""
    kind = "pass-through"


PASS_THROUGH = PassThroughOutcome()

Outcome = Union[Respond, Reject, PassThroughOutcome]


# =============================================================================
# Classification
# =============================================================================

def find_rule(method: Optional[str], rules: RuleTable) -> Optional[Rule]:
    """Return the first rule for ``method``, or None."""
    if method is None:
        return None
    for rule in rules:
        if rule.method == method:
            return rule
    return None


def classify(request: RpcRequest, rules: RuleTable) -> Outcome:
    """
    Decide how to answer ``request``.

    Requests without a usable method name (non-object bodies, missing or
    non-string ``method``) always pass through so that the upstream node
    gets to judge them.

    Args:
        request: Inbound request; never modified
        rules: Ordered rule table, first match wins

    Returns:
        Respond, Reject, or PASS_THROUGH
    """
    rule = find_rule(request.method, rules)
    if rule is None:
        outcome = PASS_THROUGH
    else:
        outcome = _apply(rule.action, request)

    reporting.log_decision(request, outcome)
    return outcome


def _apply(action: Action, request: RpcRequest) -> Outcome:
    if isinstance(action, Mock):
        return Respond(RpcResponse(id=request.response_id(), result=action.resolve(request)))

    if isinstance(action, Block):
        error = RpcError.create(request.response_id(), action.code, action.message)
        return Reject(action.status_code, error)

    return PASS_THROUGH


# =============================================================================
# Built-in Rules
# =============================================================================

def forbidden(method: str, status_code: int = 403) -> Block:
    """Block ``method`` with the standard forbidden message."""
    return Block(
        status_code=status_code,
        code=SERVER_ERROR,
        message=f"Forbidden: {method} not allowed",
    )


def default_rules(settings: Optional[GatewaySettings] = None) -> RuleTable:
    """
    Build the gateway's rule table.

    Blocking ``eth_getTransactionReceipt`` with HTTP 403 is intentional:
    wallets such as MetaMask treat the receipt as not yet available and
    keep polling instead of failing the transaction.
    """
    settings = settings or GatewaySettings()

    rules = [
        Rule("eth_chainId", Mock(Web3.to_hex(settings.chain_id))),
        Rule("eth_blockNumber", Mock(Web3.to_hex(settings.block_number))),
        Rule("eth_getBalance", Mock(Web3.to_hex(settings.balance))),
    ]

    if settings.block_receipts:
        rules.append(Rule("eth_getTransactionReceipt", forbidden("eth_getTransactionReceipt")))
    else:
        rules.append(Rule("eth_getTransactionReceipt", PassThrough()))

    return tuple(rules)


def describe(rules: RuleTable) -> dict:
    """Group rule methods by action for the info endpoint."""
    summary = {"mocked": [], "blocked": [], "passed": []}
    for rule in rules:
        if isinstance(rule.action, Mock):
            summary["mocked"].append(rule.method)
        elif isinstance(rule.action, Block):
            summary["blocked"].append(rule.method)
        else:
            summary["passed"].append(rule.method)
    return summary
