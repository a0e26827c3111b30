import os
import re
import json
import asyncio
import logging
from typing import Any, Dict, List
from urllib.parse import urlparse

import aiohttp


# -----------------------------
# Utilities
# -----------------------------
def clean_search_query(query: str) -> str:
    """Drop quote characters the LLM tends to wrap its query in."""
    return re.sub(r"[\"']", "", query or "").strip()


def clean_snippet(text: str) -> str:
    if not text:
        return ""
    # HTML 태그 제거
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the JSON object out of an LLM answer.

    Accepts a ```json fenced block, a bare object, or an object surrounded by
    chatter. Raises ValueError when no object can be decoded.
    """
    content = (text or "").strip()
    candidates = []
    fenced = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", content, re.DOTALL)
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(content)
    braced = re.search(r"\{.*\}", content, re.DOTALL)
    if braced:
        candidates.append(braced.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"LLM 응답에서 JSON 객체를 찾을 수 없습니다: {content[:200]}")


def source_domains(items: List[Dict[str, Any]]) -> List[str]:
    domains: List[str] = []
    for item in items:
        dom = urlparse(item.get("link") or "").netloc.lower()
        if dom.startswith("www."):
            dom = dom[4:]
        if dom and dom not in domains:
            domains.append(dom)
    return domains


# -----------------------------
# Google CSE 검색
# -----------------------------
GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


class SearchProviderError(RuntimeError):
    """Google CSE could not be queried or answered with something unusable."""


async def search_news_google_cs(query: str, limit: int = 10) -> List[Dict[str, str]]:
    logging.info(f"Google CSE로 뉴스 검색: {query}")
    api_key = os.getenv("GOOGLE_API_KEY")
    cse_id = os.getenv("GOOGLE_CSE_ID")

    if not api_key or not cse_id:
        logging.error("Google API 키/CSE ID 누락")
        raise SearchProviderError("Google API key / CSE ID not configured")

    params = {
        "key": api_key,
        "cx": cse_id,
        "q": query,
        "num": max(1, min(limit, 10)),  # CSE는 요청당 최대 10개
    }

    try:
        async with aiohttp.ClientSession(headers={"Accept": "application/json"}) as session:
            async with session.get(GOOGLE_CSE_URL, params=params, timeout=aiohttp.ClientTimeout(total=15)) as resp:
                resp.raise_for_status()
                data = await resp.json(content_type=None)
    except aiohttp.ClientError as e:
        logging.error(f"Google CSE 요청 실패: {e}")
        raise SearchProviderError(f"Google CSE request failed: {e}") from e
    except asyncio.TimeoutError as e:
        logging.error("Google CSE 요청 시간 초과")
        raise SearchProviderError("Google CSE request timed out") from e
    except ValueError as e:
        logging.error(f"Google CSE 응답 JSON 파싱 실패: {e}")
        raise SearchProviderError("Google CSE returned invalid JSON") from e

    if not isinstance(data, dict):
        raise SearchProviderError("Google CSE returned an unexpected payload")

    items = []
    for item in data.get("items") or []:
        items.append({
            "title": clean_snippet(item.get("title", "")),
            "link": item.get("link", ""),
            "snippet": clean_snippet(item.get("snippet", "")),
        })
    return items
