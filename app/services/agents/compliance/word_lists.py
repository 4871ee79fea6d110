"""
Feste Wortlisten für die Compliance-Prüfung.

- ABSOLUTE_WORDS: absolute Werbeaussagen (Superlative, Exklusivität);
  Penalty pro gefundenem Wort.
- FORBIDDEN_WORDS: beleidigende bzw. betrugsnahe Begriffe; harter Verstoß.

CJK-Begriffe werden als Substring gesucht, lateinische Begriffe nur als
ganze Wörter (case-insensitive), damit z.B. "fakeout" nicht "fake" trifft.
"""

import re
from functools import lru_cache
from typing import List, Sequence

ABSOLUTE_WORDS = (
    # zh-CN
    "最好",
    "最低",
    "史上",
    "第一",
    "绝对",
    "完美",
    "极致",
    # en
    "best ever",
    "lowest price",
    "cheapest",
    "number one",
    "guaranteed",
    "unbeatable",
    "ultimate",
    "perfect",
)

FORBIDDEN_WORDS = (
    # zh-CN
    "垃圾",
    "假货",
    "欺诈",
    "骗人",
    # en
    "scam",
    "fraud",
    "counterfeit",
    "fake",
    "rip-off",
    "garbage",
)


@lru_cache(maxsize=None)
def _term_pattern(term: str) -> re.Pattern:
    if term.isascii():
        return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)
    return re.compile(re.escape(term))


def find_terms(text: str, terms: Sequence[str]) -> List[str]:
    """Liefert die distinct gefundenen Begriffe in Listenreihenfolge."""
    return [t for t in terms if _term_pattern(t).search(text or "")]
