"""
RPC Gateway API
Main application entry point with routes, middleware and error handlers.
"""

import os
import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from .pipeline import RpcPipeline, get_pipeline, provide_pipeline, reset_pipeline
from .routes import rpc
from .rules import describe
from .schemas import FALLBACK_ID, HealthResponse, RpcError, ServiceInfo

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Version
VERSION = "1.0.0"

INTERNAL_ERROR = -32603

# Create FastAPI app
app = FastAPI(
    title="RPC Gateway",
    description="JSON-RPC gateway that mocks, blocks or relays wallet calls",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# =============================================================================
# Middleware
# =============================================================================

# Browser wallets call the gateway cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Answer uncaught exceptions with a JSON-RPC error."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    error = RpcError.create(FALLBACK_ID, INTERNAL_ERROR, "Internal error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.model_dump(),
    )


# =============================================================================
# Startup Events
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Build the pipeline so configuration errors surface at startup."""
    pipeline = get_pipeline()
    logger.info(f"Forwarding to {pipeline.forwarder.endpoint.display_url}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down proxy server...")
    reset_pipeline()


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(rpc.router)


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["health"])
def health_check():
    """Liveness check; does not contact the upstream."""
    return HealthResponse(status="ok", message="RPC proxy server is running")


@app.get("/", response_model=ServiceInfo, tags=["root"])
def root(pipeline: RpcPipeline = Depends(provide_pipeline)):
    """Root endpoint with gateway information."""
    summary = describe(pipeline.rules)

    return ServiceInfo(
        name="RPC Gateway",
        version=VERSION,
        status="operational",
        endpoints={
            "docs": "/docs",
            "health": "/health",
            "rpc": rpc.RPC_PREFIX,
        },
        mocked_methods=summary["mocked"],
        blocked_methods=summary["blocked"],
    )
