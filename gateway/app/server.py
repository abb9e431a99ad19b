"""
Process entry point: ``python -m gateway.app.server`` or ``rpc-gateway``.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
import sys

import uvicorn

from .config import GatewaySettings
from .errors import ConfigError
from .main import app
from .routes.rpc import RPC_PREFIX

logger = logging.getLogger(__name__)


def log_banner(settings: GatewaySettings) -> None:
    """Log where the gateway listens and how wallets should reach it."""
    url = f"http://localhost:{settings.port}"
    logger.info(f"RPC Proxy Server running on {url}")
    logger.info(f"Add this RPC to MetaMask: {url}{RPC_PREFIX}")
    logger.info(f"Chain ID reported to wallets: {settings.chain_id}")
    if settings.block_receipts:
        logger.info("All eth_getTransactionReceipt calls will return 403 Forbidden")


def main() -> int:
    try:
        settings = GatewaySettings.from_env()
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    log_banner(settings)

    # uvicorn handles SIGINT/SIGTERM and runs the app's shutdown hook
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
