import os
from typing import Optional

from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI


# --- 설정값 ---
OPENAI_CHAT_MODEL = os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
LLM_REQUEST_TIMEOUT = float(os.environ.get("LLM_REQUEST_TIMEOUT", "60"))
# --- 설정값 끝 ---


def get_chat_llm(temperature: float = 0.0, timeout: Optional[float] = None, max_retries: int = 2,
                 max_tokens: Optional[int] = None) -> ChatOpenAI:
    return ChatOpenAI(
        model=OPENAI_CHAT_MODEL,
        temperature=temperature,
        timeout=timeout or LLM_REQUEST_TIMEOUT,
        max_retries=max_retries,
        max_tokens=max_tokens,
    )


def build_search_query_chain():
    """LLM chain (v1): turn a suspected news text into one web search query."""
    prompt = PromptTemplate.from_template(
        """
[Role]
You are a news verification assistant. Read the suspected news text below and
write the single best web search query for finding reporting that confirms or
refutes its central claim.

[Rules]
1) Use only names, places, numbers and events that appear in the text.
2) Keep it under 12 words, in the language of the text.
3) Output the query only. No quotes, no explanation, no prefix.

News text:
{news_text}

Links found in the text:
{news_links}

Query:
"""
    )
    return prompt | get_chat_llm()


def build_news_verdict_chain():
    """LLM chain (v2): re-evaluate the news text against web search evidence.

    The answer must be a single JSON object; the caller parses it with the same
    fenced-json tolerant parser used for other chain outputs.
    """
    prompt = PromptTemplate.from_template(
        """
[Role]
You are a fact-checking analyst. Decide how authentic the news text is, using
the web search evidence below. Do not invent sources.

[Verdicts]
- REAL: the evidence confirms the central claim.
- FAKE: the evidence contradicts it or credible outlets debunk it.
- MISLEADING: partly true but distorted, out of context or exaggerated.
- UNCERTAIN: the evidence is insufficient either way.

[Output format]
Return only JSON, no markdown outside it:
{{
  "authenticity_score": <integer 0-100>,
  "final_verdict": "REAL" | "FAKE" | "UNCERTAIN" | "MISLEADING",
  "summary": "<two or three sentences>",
  "key_findings": ["<finding>", "..."],
  "red_flags": ["<issue>", "..."],
  "sources": [{{"title": "<title>", "url": "<url>"}}]
}}

News text:
{news_text}

Links found in the text:
{news_links}

Web search evidence (JSON):
{search_results}

JSON:
"""
    )
    return prompt | get_chat_llm()


def build_hindi_speech_chain(timeout: Optional[float] = None):
    """LLM chain: short spoken Hindi explanation of a verdict (100-150 words)."""
    prompt = PromptTemplate.from_template(
        """Create a brief Hindi explanation (100-150 words) of this news analysis:

Analysis: {analysis_json}

Your response should:
1. Start with "नमस्ते"
2. Mention if the news is real/fake and the authenticity score
3. Briefly mention 1-2 key factors that led to this conclusion
4. End with advice on verifying such news

Keep it simple, natural and conversational in pure Hindi."""
    )
    # 음성 생성은 대기 시간을 제한하고 재시도하지 않습니다.
    return prompt | get_chat_llm(temperature=0.5, timeout=timeout, max_retries=0, max_tokens=1024)
