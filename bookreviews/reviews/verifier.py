import re
from collections import Counter


SWEAR_WORDS = frozenset({"shit", "fuck", "damn", "crap", "bullshit", "ass"})
MIN_WORDS = 10

_WORD = re.compile(r"[a-z']+")


class ReviewVerifier:
    """Text rules a review has to pass before it is stored."""

    def does_meet_quality_standards(self, review: str) -> bool:
        text = (review or "").lower()
        if "lorem ipsum" in text:
            return False

        words = _WORD.findall(text)
        if any(word in SWEAR_WORDS for word in words):
            return False
        if len(words) < MIN_WORDS:
            return False

        # Spam like "good good good good ..."
        _, most_common = Counter(words).most_common(1)[0]
        if most_common * 2 > len(words):
            return False

        return True
