"""Classify (v1/v2) and search capability handler tests"""

import asyncio
from types import SimpleNamespace

from truthguard.core.invoker import CapabilityRequest
from truthguard.services import news_detector, search
from truthguard.services.news_detector import FinalVerdict, VerificationVerdict, handle_news_detect
from truthguard.core.lambdas import SearchProviderError
from truthguard.services.search import handle_search


class FakeChain:
    def __init__(self, content):
        self.content = content
        self.inputs = []

    async def ainvoke(self, inputs):
        self.inputs.append(inputs)
        return SimpleNamespace(content=self.content)


def test_verdict_model_normalizes_llm_output():
    verdict = VerificationVerdict.model_validate({
        "authenticity_score": "82.4",
        "final_verdict": " real ",
        "summary": "ok",
        "key_findings": ["two outlets confirm"],
    })
    assert verdict.authenticity_score == 82
    assert verdict.final_verdict == FinalVerdict.REAL
    assert verdict.model_dump(mode="json")["key_findings"] == ["two outlets confirm"]

    clamped = VerificationVerdict.model_validate({"authenticity_score": 140, "final_verdict": "satire"})
    assert clamped.authenticity_score == 100
    assert clamped.final_verdict == FinalVerdict.UNCERTAIN

    assert VerificationVerdict.model_validate({"authenticity_score": None}).authenticity_score == 50


def test_v1_returns_search_query(monkeypatch):
    chain = FakeChain("Covid vaccine approval India\nextra line")
    monkeypatch.setattr(news_detector, "build_search_query_chain", lambda: chain)

    request = CapabilityRequest(body={"newsText": "Vaccine approved", "newsLink": ["https://a.com/x"]},
                                headers={"version": "v1"})
    response = asyncio.run(handle_news_detect(request))

    assert response.status_code == 200
    assert response.body == {"status": True, "data": "Covid vaccine approval India"}
    assert chain.inputs[0] == {"news_text": "Vaccine approved", "news_links": "https://a.com/x"}


def test_v2_returns_normalized_verdict(monkeypatch):
    chain = FakeChain('```json\n{"authenticity_score": 12, "final_verdict": "FAKE", "summary": "Debunked."}\n```')
    monkeypatch.setattr(news_detector, "build_news_verdict_chain", lambda: chain)

    request = CapabilityRequest(
        body={"newsText": "Aliens land", "newsLink": [], "googleSearchResult": {"data": {"items": []}}},
        headers={"version": "V2"},
    )
    response = asyncio.run(handle_news_detect(request))

    assert response.status_code == 200
    assert response.body["status"] is True
    assert response.body["data"] == {"authenticity_score": 12, "final_verdict": "FAKE", "summary": "Debunked."}
    assert chain.inputs[0]["news_links"] == "(none)"
    assert '"items": []' in chain.inputs[0]["search_results"]


def test_provider_failure_is_reported_as_status_false(monkeypatch):
    monkeypatch.setattr(news_detector, "build_news_verdict_chain", lambda: FakeChain("not json at all"))

    request = CapabilityRequest(body={"newsText": "x"}, headers={"version": "v2"})
    response = asyncio.run(handle_news_detect(request))

    assert response.status_code == 500
    assert response.body["status"] is False


def test_empty_query_is_status_false(monkeypatch):
    monkeypatch.setattr(news_detector, "build_search_query_chain", lambda: FakeChain("   "))

    response = asyncio.run(handle_news_detect(CapabilityRequest(body={"newsText": "x"})))

    assert response.body["status"] is False


def test_missing_news_text_is_rejected():
    response = asyncio.run(handle_news_detect(CapabilityRequest(body={})))
    assert response.status_code == 400
    assert response.body["status"] is False


def test_search_wraps_provider_items(monkeypatch):
    seen = {}

    async def fake_search(query, limit=10):
        seen["query"] = query
        return [{"title": "WHO", "link": "https://www.who.int/news/1", "snippet": "s"}]

    monkeypatch.setattr(search, "search_news_google_cs", fake_search)

    response = asyncio.run(handle_search(CapabilityRequest(body={"query": " covid vaccine "})))

    assert seen["query"] == "covid vaccine"
    assert response.status_code == 200
    assert response.body["status"] is True
    assert response.body["data"]["domains"] == ["who.int"]
    assert response.body["data"]["items"][0]["title"] == "WHO"


def test_search_requires_query():
    response = asyncio.run(handle_search(CapabilityRequest(body={"query": ""})))
    assert response.status_code == 400
    assert response.body["status"] is False


def test_search_provider_failure_is_status_false(monkeypatch):
    async def failing_search(query, limit=10):
        raise SearchProviderError("Google CSE request failed: 429")

    monkeypatch.setattr(search, "search_news_google_cs", failing_search)

    response = asyncio.run(handle_search(CapabilityRequest(body={"query": "covid vaccine"})))

    assert response.status_code == 502
    assert response.body["status"] is False
    assert "429" in response.body["error"]
