import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from truthguard.core.auth import require_auth_identity
from truthguard.core.errors import SERVER_ADVICE, PipelineError
from truthguard.core.invoker import AuthIdentity
from truthguard.services.verification import PipelineRequest, VerificationPipeline


class NewsTextRequest(BaseModel):
    text: Optional[str] = None


def create_router(get_pipeline: Callable[[], VerificationPipeline]) -> APIRouter:
    router = APIRouter()

    @router.get("/data")
    async def data_hint():
        return {"message": "This is GET Request Make Post Request", "status": True}

    @router.post("/data")
    async def data_endpoint(req: NewsTextRequest, request: Request,
                            identity: AuthIdentity = Depends(require_auth_identity)):
        """뉴스 본문을 받아 검색어 생성 → 웹 검색 → 재판정 순으로 검증합니다."""
        pipeline_request = PipelineRequest(
            raw_text=req.text,
            auth_identity=identity,
            request_headers=dict(request.headers),
        )
        try:
            verdict = await get_pipeline().run(pipeline_request)
            return {"status": True, "data": verdict}
        except PipelineError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_envelope())
        except Exception as e:
            logging.error(f"뉴스 검증 처리 중 예기치 못한 오류: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={
                "status": False,
                "message": "Server error",
                "advice": SERVER_ADVICE,
                "error": str(e),
            })

    return router
