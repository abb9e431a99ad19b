"""
JSON-RPC entry point of the gateway.
"""

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from ..pipeline import RpcPipeline, provide_pipeline
from ..schemas import RpcRequest

RPC_PREFIX = "/rpc"

router = APIRouter(tags=["rpc"])


@router.post(RPC_PREFIX)
@router.post(RPC_PREFIX + "/{subpath:path}")
async def rpc_endpoint(
    request: Request,
    pipeline: RpcPipeline = Depends(provide_pipeline),
):
    """
    Handle a JSON-RPC call.

    The body is parsed leniently: anything that is not a JSON-RPC object
    is relayed upstream as-is. Mocked and blocked methods are answered on
    the event loop; only the upstream call goes to the thread pool, so
    stalled upstream calls never delay local answers.
    """
    body = await request.body()
    rpc_request = RpcRequest.from_body(body)
    path = request.url.path

    result = pipeline.answer_locally(rpc_request, path, request.method)
    if result is None:
        # Worker threads cannot be interrupted; a caller that disconnects
        # leaves the call to finish or hit the upstream timeout.
        result = await run_in_threadpool(pipeline.forwarder.forward, rpc_request, path)

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.media_type,
    )
