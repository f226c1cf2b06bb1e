"""
Citation Extraction Skill

Derives a bounded, de-duplicated list of source URLs from free text.
"""

from typing import Iterable, List
import re

URL_PATTERN = re.compile(r"(https?://[^\s)\]]+)")
DEFAULT_MAX_CITATIONS = 5


def extract_citations(text: str, max_items: int = DEFAULT_MAX_CITATIONS) -> List[str]:
    """
    Extract URLs from text in first-occurrence order.

    Args:
        text: Any text; None or empty yields []
        max_items: Cap on the number of URLs returned

    Returns:
        Unique URLs, at most max_items of them
    """
    if not text or max_items <= 0:
        return []

    seen = []
    for url in URL_PATTERN.findall(text):
        if url not in seen:
            seen.append(url)
            if len(seen) >= max_items:
                break
    return seen


def merge_citations(sources: Iterable[str], max_items: int = DEFAULT_MAX_CITATIONS) -> List[str]:
    """Extract citations across several texts, earlier texts first."""
    return extract_citations("\n".join(s for s in sources if s), max_items)
