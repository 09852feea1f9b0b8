"""Character-range language heuristic for freshly ingested items."""

import re

# Hiragana, katakana and CJK unified ideographs
_JAPANESE_RE = re.compile("[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")
# Hangul syllables and jamo
_KOREAN_RE = re.compile("[\uAC00-\uD7AF\u1100-\u11FF]")

# Characters a script needs before it counts as the item's language
MIN_SCRIPT_CHARS = 5


def detect_language(text: str | None) -> str:
    """
    Guess the language of ``text`` from its script.

    Returns "ko" when Hangul outnumbers Japanese script and passes the
    threshold, "ja" when Japanese script passes it, otherwise "en".
    """
    if not text:
        return "en"

    ja_count = len(_JAPANESE_RE.findall(text))
    ko_count = len(_KOREAN_RE.findall(text))

    if ko_count > ja_count and ko_count > MIN_SCRIPT_CHARS:
        return "ko"
    if ja_count > MIN_SCRIPT_CHARS:
        return "ja"
    return "en"
