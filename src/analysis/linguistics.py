"""Linguistic features computed locally from a chat transcript."""

import re
from collections import Counter

_WORD_RE = re.compile(r"[a-z0-9']+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")

_STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "from", "i",
    "if", "in", "is", "it", "its", "me", "my", "of", "on", "or", "so", "that",
    "the", "this", "to", "was", "we", "with", "you", "your",
}


def _tokens(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def frequent_phrases(text: str, top_n: int = 5, min_count: int = 2) -> list[str]:
    """Most common two-word phrases, skipping pairs made only of stopwords."""
    counts: Counter[str] = Counter()
    for sentence in _SENTENCE_SPLIT_RE.split(text.lower()):
        words = _WORD_RE.findall(sentence)
        for first, second in zip(words, words[1:]):
            if first in _STOPWORDS and second in _STOPWORDS:
                continue
            counts[f"{first} {second}"] += 1
    return [phrase for phrase, n in counts.most_common(top_n) if n >= min_count]


def compute_linguistic_features(text: str, top_n: int = 5) -> dict:
    """Word counts, vocabulary size, mean sentence length and repeated phrases.

    Returns:
        {word_count, unique_word_count, average_sentence_length, frequent_phrases}
    """
    words = _tokens(text)
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if _tokens(s)]
    avg_len = len(words) / len(sentences) if sentences else 0.0
    return {
        "word_count": len(words),
        "unique_word_count": len(set(words)),
        "average_sentence_length": round(avg_len, 1),
        "frequent_phrases": frequent_phrases(text, top_n=top_n),
    }
