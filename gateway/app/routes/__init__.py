"""
API routes for the RPC gateway.
"""

from . import rpc

__all__ = ["rpc"]
