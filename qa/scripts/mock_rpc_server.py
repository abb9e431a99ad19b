"""
Fake upstream node for running the gateway end to end without a real RPC.

    uvicorn qa.scripts.mock_rpc_server:app --port 8546
    UPSTREAM_URL=http://localhost:8546 rpc-gateway
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI()

CANNED_RESULTS = {
    "eth_blockNumber": "0x1",
    "eth_chainId": "0x1",
    "eth_gasPrice": "0x3b9aca00",
    "eth_estimateGas": "0x5208",
    "eth_getTransactionCount": "0x0",
    "eth_call": "0x" + "0" * 64,
    "eth_sendTransaction": "0x" + "ab" * 32,
    "eth_sendRawTransaction": "0x" + "cd" * 32,
    "net_version": "1",
}


class RPCRequest(BaseModel):
    jsonrpc: str
    method: str
    params: list | dict | None = None
    id: int | str | None = None


@app.post("/")
def rpc(req: RPCRequest):
    # Return canned responses based on method
    if req.method in CANNED_RESULTS:
        return JSONResponse({"jsonrpc": "2.0", "id": req.id, "result": CANNED_RESULTS[req.method]})
    return JSONResponse(
        status_code=400,
        content={
            "jsonrpc": "2.0",
            "id": req.id,
            "error": {"code": -32601, "message": f"Method {req.method} not found"},
        },
    )
