import os
import logging
from contextlib import asynccontextmanager
from typing import List

from dotenv import load_dotenv

# .env 파일에서 환경 변수를 로드합니다. (모듈별 설정값보다 먼저)
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from truthguard.core.state import AnalysisStore, SpeechCache
from truthguard.routers.capabilities import create_router as create_capability_router
from truthguard.routers.data import create_router as create_data_router
from truthguard.routers.voice import create_router as create_voice_router
from truthguard.services.speech import SpeechRenderer
from truthguard.services.verification import build_default_pipeline

# 로깅 설정
logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')

DEFAULT_ALLOWED_ORIGINS = [
    "https://truth-guard-seven.vercel.app",
    "https://truth-guards.netlify.app",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
]

# --- 프로세스 전역 상태 (최신 분석 결과 1건, 음성 캐시 1건) ---
analysis_store = AnalysisStore()
speech_cache = SpeechCache()
pipeline = build_default_pipeline(analysis_store)
speech_renderer = SpeechRenderer(analysis_store, speech_cache)


def _allowed_origins() -> List[str]:
    """Single CORS policy: every origin outside production, the configured list inside it."""
    if os.environ.get("APP_ENV", "development") != "production":
        return ["*"]
    raw = os.environ.get("CORS_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or DEFAULT_ALLOWED_ORIGINS


# --- FastAPI Lifespan Manager ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("애플리케이션 시작...")
    if not os.environ.get("OPENAI_API_KEY"):
        logging.warning("⚠️ OPENAI_API_KEY가 없습니다. 뉴스 판별과 음성 생성이 실패합니다.")
    if not os.environ.get("GOOGLE_API_KEY") or not os.environ.get("GOOGLE_CSE_ID"):
        logging.warning("⚠️ Google CSE 설정이 없습니다. 검색 단계가 실패합니다.")
    yield
    logging.info("애플리케이션 종료...")


# --- FastAPI 앱 생성 ---
app = FastAPI(title="TruthGuard", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization", "version"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # dict detail은 오류 봉투 그대로 반환
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": False, "message": str(exc.detail)},
        headers=exc.headers,
    )


app.include_router(create_data_router(lambda: pipeline))
app.include_router(create_capability_router())
app.include_router(create_voice_router(lambda: speech_renderer))


@app.get("/")
def read_root():
    return {"message": "Server is running", "status": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
