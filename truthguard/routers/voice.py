import logging
from typing import Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from truthguard.core.errors import PipelineError
from truthguard.services.speech import SpeechRenderer


def create_router(get_renderer: Callable[[], SpeechRenderer]) -> APIRouter:
    router = APIRouter()

    @router.api_route("/voice", methods=["GET", "POST"])
    async def voice_endpoint():
        """최신 분석 결과를 힌디어 음성(mp3)으로 반환합니다."""
        logging.info("음성 생성 요청 수신")
        try:
            audio = await get_renderer().render_latest_verdict_as_speech()
        except PipelineError as e:
            logging.error(f"음성 생성 실패 [stage={e.stage}]: {e.message} {e.error or ''}")
            return JSONResponse(status_code=e.status_code, content=e.to_envelope())
        except Exception as e:
            logging.error(f"음성 생성 라우트 오류: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={
                "status": False,
                "message": "Server error in voice generation",
                "advice": "Please try again later",
                "error": str(e),
            })
        return Response(content=audio, media_type="audio/mpeg")

    return router
