import os
import logging
from typing import Optional

from truthguard.core.invoker import CapabilityRequest, CapabilityResponse
from truthguard.core.lambdas import SearchProviderError, search_news_google_cs, source_domains


SEARCH_RESULT_LIMIT = int(os.environ.get("SEARCH_RESULT_LIMIT", "10"))


async def handle_search(request: CapabilityRequest) -> Optional[CapabilityResponse]:
    """Search capability: ``{query}`` in, ``{status, data: {query, items, domains}}`` out.

    A provider failure is answered with ``status: false`` so the verdict is
    never built without evidence.
    """
    query = str((request.body or {}).get("query") or "").strip()
    if not query:
        return CapabilityResponse(400, {"status": False, "message": "Query is Required"})

    try:
        items = await search_news_google_cs(query, limit=SEARCH_RESULT_LIMIT)
    except SearchProviderError as e:
        logging.error(f"❌ 검색 실패: '{query}' ({e})")
        return CapabilityResponse(502, {"status": False, "message": "Failed to Search News", "error": str(e)})

    logging.info(f"🔍 검색 결과 {len(items)}건: '{query}'")
    return CapabilityResponse(200, {
        "status": True,
        "data": {
            "query": query,
            "items": items,
            "domains": source_domains(items),
        },
    })
