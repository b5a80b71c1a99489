"""
Keyword Extraction Module
=========================
Frequency-ranked keywords for a block of transcript text.

Short words are dropped by length instead of with a stop-word list, so the
extractor is language-agnostic enough for topic fallbacks:

    >>> extract_keywords("Keratin treatment, keratin care and more treatment!")
    ['keratin', 'treatment']
"""

import re
from collections import Counter
from typing import List

# Anything that is neither an ASCII word character nor whitespace
_PUNCTUATION = re.compile(r'[^A-Za-z0-9_\s]')

DEFAULT_KEYWORD_LIMIT = 5
DEFAULT_MIN_LENGTH = 5


def tokenize(text: str, min_length: int = DEFAULT_MIN_LENGTH) -> List[str]:
    """Lower-case, strip punctuation and keep tokens of at least min_length."""
    if not text:
        return []
    cleaned = _PUNCTUATION.sub('', text.lower())
    return [word for word in cleaned.split() if len(word) >= min_length]


def extract_keywords(
    text: str,
    limit: int = DEFAULT_KEYWORD_LIMIT,
    min_length: int = DEFAULT_MIN_LENGTH
) -> List[str]:
    """
    Return the most frequent meaningful words of a text.

    Words are ranked by descending count. Words with equal counts keep the
    order in which they first appear in the text.

    Args:
        text: Text to analyze
        limit: Maximum number of keywords to return
        min_length: Minimum word length (shorter words are discarded)

    Returns:
        Up to `limit` keywords; empty when no word qualifies
    """
    counts = Counter(tokenize(text, min_length))
    # sorted() is stable and Counter keeps first-seen order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]
