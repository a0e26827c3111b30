import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from truthguard.core.auth import require_auth_identity
from truthguard.core.invoker import AuthIdentity, CapabilityRequest, Handler
from truthguard.services.news_detector import handle_news_detect
from truthguard.services.search import handle_search


async def _serve(handler: Handler, payload: Dict[str, Any], request: Request, identity: AuthIdentity,
                 **header_overrides: str) -> JSONResponse:
    capability_request = CapabilityRequest(
        body=payload if isinstance(payload, dict) else {},
        auth_identity=identity,
        headers={**dict(request.headers), **header_overrides},
    )
    try:
        response = await handler(capability_request)
    except Exception as e:
        logging.error(f"{request.url.path} 처리 중 오류: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"status": False, "message": "Server error", "error": str(e)})
    if response is None:
        return JSONResponse(status_code=500, content={"status": False, "message": "No response from capability"})
    return JSONResponse(status_code=response.status_code, content=response.body)


def create_router() -> APIRouter:
    """Network endpoints of the classify and search capabilities.

    These are what the pipeline falls back to when an in-process call fails,
    and what a standalone deployment of a single capability serves.
    """
    router = APIRouter()

    @router.post("/ai-news-detect")
    async def news_detect_endpoint(request: Request, payload: Dict[str, Any] = Body(default={}),
                                   identity: AuthIdentity = Depends(require_auth_identity)):
        return await _serve(handle_news_detect, payload, request, identity)

    @router.post("/ai-news-detect/v2")
    async def news_detect_v2_endpoint(request: Request, payload: Dict[str, Any] = Body(default={}),
                                      identity: AuthIdentity = Depends(require_auth_identity)):
        return await _serve(handle_news_detect, payload, request, identity, version="v2")

    @router.post("/search")
    async def search_endpoint(request: Request, payload: Dict[str, Any] = Body(default={}),
                              identity: AuthIdentity = Depends(require_auth_identity)):
        return await _serve(handle_search, payload, request, identity, version="v1")

    return router
