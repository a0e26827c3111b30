import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional


class AnalysisStore:
    """Single-slot holder for the most recent verification verdict.

    Every ``put`` overwrites the slot and bumps ``revision``; there is no
    history and no locking, concurrent writers race and the last one wins.
    """

    def __init__(self):
        self._latest: Optional[Dict[str, Any]] = None
        self.revision = 0

    def put(self, verdict: Dict[str, Any]) -> int:
        self._latest = verdict
        self.revision += 1
        logging.info(f"🗂️ 최신 분석 결과 갱신 (revision={self.revision})")
        return self.revision

    def get(self) -> Optional[Dict[str, Any]]:
        return self._latest

    def reset(self):
        self._latest = None
        self.revision = 0


@dataclass(frozen=True)
class SpeechCacheEntry:
    speech_text: str
    audio_bytes: bytes
    revision: int


class SpeechCache:
    """Single-slot cache of the last rendered speech text and audio."""

    def __init__(self):
        self._entry: Optional[SpeechCacheEntry] = None

    def get(self, revision: Optional[int] = None) -> Optional[SpeechCacheEntry]:
        # revision=None: any cached entry is a hit
        entry = self._entry
        if entry is None:
            return None
        if revision is not None and entry.revision != revision:
            return None
        return entry

    def put(self, speech_text: str, audio_bytes: bytes, revision: int) -> SpeechCacheEntry:
        self._entry = SpeechCacheEntry(speech_text, audio_bytes, revision)
        return self._entry

    def clear(self):
        self._entry = None
