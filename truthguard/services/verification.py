"""Three-stage news verification pipeline.

START -> LINKS_EXTRACTED -> CLASSIFIED -> SEARCHED -> RECLASSIFIED, with FAILED
reachable from every non-terminal state. The first failure aborts the run;
nothing partial is ever returned.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from truthguard.core.errors import SERVER_ADVICE, InputInvalid, PipelineError, ShapeMismatch
from truthguard.core.invoker import (
    AuthIdentity,
    CapabilityDescriptor,
    DualModeInvoker,
    HttpCapability,
    RequestContext,
)
from truthguard.core.lambdas import clean_search_query
from truthguard.core.links import extract_links, strip_links
from truthguard.core.state import AnalysisStore
from truthguard.services.news_detector import handle_news_detect
from truthguard.services.search import handle_search


class PipelineState(str, Enum):
    START = "START"
    LINKS_EXTRACTED = "LINKS_EXTRACTED"
    CLASSIFIED = "CLASSIFIED"
    SEARCHED = "SEARCHED"
    RECLASSIFIED = "RECLASSIFIED"
    FAILED = "FAILED"


@dataclass
class PipelineRequest:
    raw_text: Optional[str]
    auth_identity: Optional[AuthIdentity] = None
    request_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass
class PipelineRun:
    state: PipelineState = PipelineState.START
    news_text: str = ""
    news_links: List[str] = field(default_factory=list)
    query: str = ""
    search_results: Any = None
    verdict: Any = None
    failed_stage: Optional[str] = None
    failure_reason: Optional[str] = None

    def advance(self, state: PipelineState):
        logging.info(f"➡️ 파이프라인 상태: {self.state.value} → {state.value}")
        self.state = state

    def fail(self, error: PipelineError):
        self.state = PipelineState.FAILED
        self.failed_stage = error.stage
        self.failure_reason = error.error or error.message


CLASSIFY = CapabilityDescriptor(
    name="ai-news-detect",
    stage="classify",
    handler=handle_news_detect,
    endpoint="/ai-news-detect",
    header_overrides={"version": "v1"},
    failure_message="Error in detecting news",
    failure_advice="Please contact Backend Developer - API call failed",
)

SEARCH = CapabilityDescriptor(
    name="search",
    stage="search",
    handler=handle_search,
    endpoint="/search",
    header_overrides={"version": "v1"},
    failure_message="Error in searching news",
    failure_advice="Please contact Backend Developer - Search API call failed",
)

RECLASSIFY = CapabilityDescriptor(
    name="ai-news-detect-v2",
    stage="reclassify",
    handler=handle_news_detect,
    endpoint="/ai-news-detect/v2",
    header_overrides={"version": "v2"},
    failure_message="Error in final analysis",
    failure_advice="Please contact Backend Developer - Final AI call failed",
)


class VerificationPipeline:
    def __init__(self, classify: DualModeInvoker, search: DualModeInvoker, reclassify: DualModeInvoker,
                 store: AnalysisStore):
        self.classify = classify
        self.search = search
        self.reclassify = reclassify
        self.store = store

    async def run(self, request: PipelineRequest) -> Any:
        """Verify ``request.raw_text`` and return the verdict; raises PipelineError on any failure."""
        return (await self.execute(request)).verdict

    async def execute(self, request: PipelineRequest) -> PipelineRun:
        run = PipelineRun()
        try:
            await self._run_stages(run, request)
        except PipelineError as e:
            run.fail(e)
            logging.error(f"❌ 파이프라인 실패 [stage={e.stage}]: {e.message} ({run.failure_reason})")
            raise
        return run

    async def _run_stages(self, run: PipelineRun, request: PipelineRequest):
        text = request.raw_text
        if not isinstance(text, str) or not text.strip():
            raise InputInvalid(stage="input")

        run.news_links = extract_links(text)
        run.news_text = strip_links(text, run.news_links)
        run.advance(PipelineState.LINKS_EXTRACTED)

        context = RequestContext(auth_identity=request.auth_identity, headers=dict(request.request_headers))

        # 1) 검색어 생성 (v1)
        result = await self.classify.invoke({"newsText": run.news_text, "newsLink": run.news_links}, context)
        logging.info(f"AI 검색어 결과 ({result.via}): {result.body}")
        if not result.status or not isinstance(result.data, str) or not result.data.strip():
            raise self._declined("classify", "/ai-news-detect")

        run.query = clean_search_query(result.data)
        if not run.query:
            raise self._declined("classify", "/ai-news-detect")
        run.advance(PipelineState.CLASSIFIED)
        logging.info(f"정제된 검색어: {run.query}")

        # 2) 웹 검색
        result = await self.search.invoke({"query": run.query}, context)
        # 결과 형태는 보지 않지만 명시적인 status: false 는 실패로 처리합니다.
        if not result.body or (isinstance(result.body, dict) and result.body.get("status") is False):
            raise ShapeMismatch(
                "Error in searching news",
                stage="search",
                advice=SERVER_ADVICE,
                ai_response="Failed to Search News AI Error",
                route="/search",
            )
        run.search_results = result.body
        run.advance(PipelineState.SEARCHED)

        # 3) 검색 결과 기반 재판정 (v2)
        result = await self.reclassify.invoke({
            "newsText": run.news_text,
            "newsLink": run.news_links,
            "googleSearchResult": run.search_results,
        }, context)
        if result.status is not True:
            raise self._declined("reclassify", "/ai-news-detect/v2")

        run.verdict = result.data
        run.advance(PipelineState.RECLASSIFIED)
        self.store.put(run.verdict)

    @staticmethod
    def _declined(stage: str, route: str) -> ShapeMismatch:
        return ShapeMismatch(
            "Error in detecting news",
            stage=stage,
            advice=SERVER_ADVICE,
            ai_response="Failed to Detect News AI Error",
            route=route,
        )


def build_default_pipeline(store: AnalysisStore, api_url: Optional[str] = None) -> VerificationPipeline:
    def invoker(descriptor: CapabilityDescriptor) -> DualModeInvoker:
        return DualModeInvoker(descriptor, remote=HttpCapability(descriptor, base_url=api_url))

    return VerificationPipeline(invoker(CLASSIFY), invoker(SEARCH), invoker(RECLASSIFY), store)

