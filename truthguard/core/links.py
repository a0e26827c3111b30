import re
import logging
from typing import List, Optional


# http(s) URL: optional www., host with at least one dot, optional path/query.
# ASCII word boundaries, so a Devanagari letter right after the TLD ends the match.
_URL_PATTERN = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.IGNORECASE | re.ASCII,
)
_TRAILING_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]+$")


def extract_links(text: Optional[str]) -> List[str]:
    """본문에서 뉴스 링크를 추출합니다.

    Trailing punctuation is trimmed from every match, empty matches are
    dropped and duplicates removed while keeping first-seen order.
    """
    if not text:
        return []

    links: List[str] = []
    seen = set()
    for match in _URL_PATTERN.finditer(text):
        link = _TRAILING_PUNCTUATION.sub("", match.group(0))
        if not link or link in seen:
            continue
        seen.add(link)
        links.append(link)

    if links:
        logging.info(f"🔗 본문에서 링크 {len(links)}개 추출: {links}")
    return links


def strip_links(text: Optional[str], links: List[str]) -> str:
    """Remove the first occurrence of each link, in link order, trimming as it goes."""
    stripped = text or ""
    for link in links:
        stripped = stripped.replace(link, "", 1).strip()
    return stripped
