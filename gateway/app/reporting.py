"""
Operator-facing request logging.

Nothing here influences how a request is answered.
"""

import json
import logging
from typing import Any

from web3 import Web3

logger = logging.getLogger("gateway.requests")


def _format_address(value: Any) -> str:
    if isinstance(value, str) and Web3.is_address(value):
        return Web3.to_checksum_address(value)
    return str(value)


def log_inbound(http_method: str, path: str, request) -> None:
    """Log an inbound call and a summary of notable params."""
    logger.info(f"{http_method} {path}")

    method = request.method
    if method is None:
        return

    logger.info(f"RPC method: {method}")

    if method == "eth_getBalance":
        logger.info(f"Getting balance for: {_format_address(request.first_param())}")
    elif method == "eth_sendTransaction":
        logger.info(f"Sending transaction: {json.dumps(request.first_param(), indent=2)}")
    elif method == "eth_getTransactionReceipt":
        logger.info(f"Checking receipt for tx: {request.first_param()}")


def log_decision(request, outcome) -> None:
    """Log what the rule table decided for ``request``."""
    method = request.method or "unknown"

    if outcome.kind == "respond":
        logger.info(f"Mocked {method} -> {outcome.response.result}")
    elif outcome.kind == "reject":
        logger.warning(
            f"Blocking {method} with HTTP {outcome.status_code}"
            f" (tx: {request.first_param()})"
        )
        if method == "eth_getTransactionReceipt":
            logger.warning("Wallet should keep retrying the receipt lookup")
    else:
        logger.debug(f"Passing {method} through to upstream")


def log_relay(request, status_code: int) -> None:
    """Log the upstream status of a relayed call."""
    method = request.method or "unknown"

    if method == "eth_getBalance":
        logger.info(f"Balance request relayed - Status: {status_code}")
    elif method == "eth_sendTransaction":
        logger.info(f"Transaction sent - Status: {status_code}")
        logger.info("Now watch for eth_getTransactionReceipt attempts...")
    else:
        logger.info(f"Proxied {method} - Status: {status_code}")


def log_transport_error(request, error: Exception) -> None:
    method = request.method or "unknown"
    logger.error(f"Proxy error for {method}: {error}")
