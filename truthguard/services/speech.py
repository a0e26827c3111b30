import os
import json
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Tuple

from openai import AsyncOpenAI

from truthguard.core.errors import AudioSynthesisFailed, NoAnalysisAvailable, SpeechGenerationFailed
from truthguard.core.llm_chains import build_hindi_speech_chain
from truthguard.core.state import AnalysisStore, SpeechCache


# --- 설정값 ---
OPENAI_TTS_MODEL = os.environ.get("OPENAI_TTS_MODEL", "gpt-4o-mini-tts")
OPENAI_TTS_VOICE = os.environ.get("OPENAI_TTS_VOICE", "alloy")
SPEECH_TIMEOUT_SECONDS = float(os.environ.get("SPEECH_TIMEOUT_SECONDS", "30"))
SPEECH_STRICT = os.environ.get("SPEECH_STRICT", "0") in ("1", "true", "TRUE", "yes", "YES")
VOICE_CACHE_FOLLOWS_LATEST = os.environ.get("VOICE_CACHE_FOLLOWS_LATEST", "1") in ("1", "true", "TRUE", "yes", "YES")
# --- 설정값 끝 ---

APOLOGY_SPEECH = (
    "नमस्ते, हमें खेद है कि इस समय हिंदी में विश्लेषण उपलब्ध नहीं है। "
    "कृपया बाद में पुनः प्रयास करें।"
)


async def generate_speech_text(analysis: Dict[str, Any]) -> str:
    chain = build_hindi_speech_chain(timeout=SPEECH_TIMEOUT_SECONDS)
    result = await chain.ainvoke({"analysis_json": json.dumps(analysis, ensure_ascii=False, default=str)})
    text = (result.content or "").strip()
    if not text:
        raise ValueError("LLM이 빈 음성 스크립트를 반환했습니다.")
    return text


async def synthesize_speech(text: str) -> bytes:
    """Stream the MP3 for ``text`` and return it fully buffered, chunks in arrival order."""
    logging.info(f"🔊 음성 합성 시작 (model={OPENAI_TTS_MODEL}, voice={OPENAI_TTS_VOICE}, {len(text)}자)")
    chunks = []
    async with AsyncOpenAI(timeout=SPEECH_TIMEOUT_SECONDS, max_retries=0) as client:
        async with client.audio.speech.with_streaming_response.create(
            model=OPENAI_TTS_MODEL,
            voice=OPENAI_TTS_VOICE,
            input=text,
            response_format="mp3",
        ) as response:
            async for chunk in response.iter_bytes():
                chunks.append(chunk)
    logging.info("🔊 음성 합성 완료")
    return b"".join(chunks)


class SpeechRenderer:
    """Renders the latest verdict as a short Hindi audio clip.

    The last rendered clip is kept in a single-slot cache. With
    ``follow_latest`` the cache entry is only reused while it was rendered from
    the current analysis revision; without it any cached clip is returned, even
    one describing an older verdict.
    """

    def __init__(
        self,
        store: AnalysisStore,
        cache: SpeechCache,
        generate_text: Callable[[Dict[str, Any]], Awaitable[str]] = generate_speech_text,
        synthesize: Callable[[str], Awaitable[bytes]] = synthesize_speech,
        strict: bool = SPEECH_STRICT,
        follow_latest: bool = VOICE_CACHE_FOLLOWS_LATEST,
        timeout: float = SPEECH_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.cache = cache
        self.generate_text = generate_text
        self.synthesize = synthesize
        self.strict = strict
        self.follow_latest = follow_latest
        self.timeout = timeout

    async def render_latest_verdict_as_speech(self) -> bytes:
        cached = self.cache.get(self.store.revision if self.follow_latest else None)
        if cached:
            logging.info(f"♻️ 캐시된 음성 반환 (revision={cached.revision})")
            return cached.audio_bytes

        analysis = self.store.get()
        revision = self.store.revision
        if analysis is None:
            raise NoAnalysisAvailable(stage="voice")

        speech_text, is_fallback = await self._speech_text(analysis)

        try:
            audio = await asyncio.wait_for(self.synthesize(speech_text), self.timeout)
        except Exception as e:
            logging.error(f"음성 합성 실패: {e}", exc_info=True)
            raise AudioSynthesisFailed(stage="voice", error=str(e)) from e
        if not audio:
            raise AudioSynthesisFailed(stage="voice", error="empty audio stream")

        # 사과 문구로 만든 음성은 캐시하지 않습니다.
        if not is_fallback:
            self.cache.put(speech_text, audio, revision)
        return audio

    async def _speech_text(self, analysis: Dict[str, Any]) -> Tuple[str, bool]:
        try:
            return await asyncio.wait_for(self.generate_text(analysis), self.timeout), False
        except Exception as e:
            if self.strict:
                raise SpeechGenerationFailed(stage="voice", error=str(e)) from e
            logging.error(f"음성 스크립트 생성 실패, 사과 문구로 대체: {e}")
            return APOLOGY_SPEECH, True
