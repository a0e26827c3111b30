import os
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from truthguard.core.invoker import CapabilityRequest, CapabilityResponse
from truthguard.core.lambdas import extract_json_object
from truthguard.core.llm_chains import build_news_verdict_chain, build_search_query_chain


# --- 설정값 ---
MAX_EVIDENCE_CHARS = int(os.environ.get("MAX_EVIDENCE_CHARS", "12000"))
# --- 설정값 끝 ---


class FinalVerdict(str, Enum):
    REAL = "REAL"
    FAKE = "FAKE"
    UNCERTAIN = "UNCERTAIN"
    MISLEADING = "MISLEADING"


class VerificationVerdict(BaseModel):
    """Verdict produced by the reclassification pass; extra evidence fields are kept."""

    model_config = ConfigDict(extra="allow")

    authenticity_score: int = 50
    final_verdict: FinalVerdict = FinalVerdict.UNCERTAIN
    summary: str = ""

    @field_validator("authenticity_score", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        try:
            score = round(float(value))
        except (TypeError, ValueError):
            return 50
        return max(0, min(100, score))

    @field_validator("final_verdict", mode="before")
    @classmethod
    def _normalize_verdict(cls, value):
        label = str(value or "").strip().upper()
        return label if label in FinalVerdict.__members__ else FinalVerdict.UNCERTAIN


def _links_for_prompt(news_links: List[str]) -> str:
    return "\n".join(news_links) if news_links else "(none)"


async def suggest_search_query(news_text: str, news_links: List[str]) -> str:
    chain = build_search_query_chain()
    result = await chain.ainvoke({"news_text": news_text, "news_links": _links_for_prompt(news_links)})
    lines = [line.strip() for line in (result.content or "").split("\n") if line.strip()]
    return lines[0] if lines else ""


async def judge_news(news_text: str, news_links: List[str], search_results: Any) -> Dict[str, Any]:
    chain = build_news_verdict_chain()
    evidence = json.dumps(search_results, ensure_ascii=False, default=str)
    if len(evidence) > MAX_EVIDENCE_CHARS:
        evidence = evidence[:MAX_EVIDENCE_CHARS]
    result = await chain.ainvoke({
        "news_text": news_text,
        "news_links": _links_for_prompt(news_links),
        "search_results": evidence,
    })
    verdict = VerificationVerdict.model_validate(extract_json_object(result.content))
    return verdict.model_dump(mode="json")


def _version_of(request: CapabilityRequest) -> str:
    return str(request.headers.get("version") or "v1").strip().lower()


async def handle_news_detect(request: CapabilityRequest) -> Optional[CapabilityResponse]:
    """Classification capability.

    v1 answers ``{status, data: <search query>}``; v2 (``version: v2`` header)
    answers ``{status, data: <verdict>}``. Provider failures are reported as
    ``status: false`` rather than raised.
    """
    body = request.body or {}
    news_text = str(body.get("newsText") or "").strip()
    news_links = [str(link) for link in (body.get("newsLink") or [])]
    version = _version_of(request)

    if not news_text and not news_links:
        return CapabilityResponse(400, {"status": False, "message": "News Text is Required"})

    try:
        if version == "v2":
            logging.info("🧠 [v2] 검색 결과 기반 뉴스 재판정 시작")
            verdict = await judge_news(news_text, news_links, body.get("googleSearchResult"))
            logging.info(f"🧠 [v2] 판정 완료: {verdict.get('final_verdict')} ({verdict.get('authenticity_score')}%)")
            return CapabilityResponse(200, {"status": True, "data": verdict})

        logging.info("🧠 [v1] 검색어 생성 시작")
        query = await suggest_search_query(news_text, news_links)
        if not query:
            return CapabilityResponse(500, {"status": False, "message": "Failed to Detect News AI Error"})
        logging.info(f"🧠 [v1] 생성된 검색어: {query}")
        return CapabilityResponse(200, {"status": True, "data": query})
    except Exception as e:
        logging.error(f"뉴스 판별({version}) 중 오류: {e}", exc_info=True)
        return CapabilityResponse(500, {
            "status": False,
            "message": "Failed to Detect News AI Error",
            "error": str(e),
        })
