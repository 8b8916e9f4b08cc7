"""Lexicon sentiment for chat transcripts, overall and per speaker."""

import re
from collections import defaultdict

_POSITIVE = frozenset({
    "great", "good", "excellent", "happy", "excited", "glad", "proud", "love",
    "lovely", "enjoy", "awesome", "fantastic", "amazing", "nice", "cool", "fun",
    "thanks", "thank", "grateful", "appreciate", "haha", "lol", "yay", "perfect",
    "brilliant", "wonderful", "sweet", "congrats", "agree", "hope", "laugh",
    "relaxed", "calm", "confident", "beautiful", "best", "win",
})

_NEGATIVE = frozenset({
    "bad", "terrible", "awful", "sad", "upset", "angry", "annoyed", "annoying",
    "frustrated", "stressed", "anxious", "worried", "tired", "exhausted", "hate",
    "sorry", "ugh", "boring", "bored", "confused", "disappointed", "lonely",
    "sick", "hurt", "scared", "afraid", "worst", "wrong", "problem", "fail",
    "failed", "cry", "mad", "difficult", "hard", "miss", "ugly",
})

# A negator flips the polarity of the next lexicon word within this many tokens
_NEGATORS = frozenset({"not", "no", "never", "dont", "don't", "isnt", "isn't", "wasnt", "wasn't"})
_NEGATION_WINDOW = 2

_TOKEN_RE = re.compile(r"[:;]-?[()DP](?![A-Za-z])|\b[A-Za-z']+\b")
_POSITIVE_EMOTICONS = frozenset({":)", ":-)", ";)", ";-)", ":D", ":-D", ":P", ":-P"})
_NEGATIVE_EMOTICONS = frozenset({":(", ":-("})

# Longer prefixes are names in prose, not speaker tags
_MAX_SPEAKER_LEN = 40
UNKNOWN_SPEAKER = "unknown"


def _tally(text: str) -> tuple[int, int]:
    """(positive, negative) hits in ``text``, honouring simple negation."""
    pos = neg = 0
    negate_for = 0
    for token in _TOKEN_RE.findall(text):
        if token in _POSITIVE_EMOTICONS:
            pos += 1
            continue
        if token in _NEGATIVE_EMOTICONS:
            neg += 1
            continue
        word = token.lower()
        if word in _NEGATORS:
            negate_for = _NEGATION_WINDOW
            continue
        polarity = 1 if word in _POSITIVE else -1 if word in _NEGATIVE else 0
        if polarity and negate_for:
            polarity = -polarity
            negate_for = 0
        elif negate_for:
            negate_for -= 1
        if polarity > 0:
            pos += 1
        elif polarity < 0:
            neg += 1
    return pos, neg


def _summarise(pos: int, neg: int) -> dict:
    total = pos + neg
    score = (pos - neg) / total if total else 0.0
    if not total:
        label = "neutral"
    elif score > 0.2:
        label = "positive"
    elif score < -0.2:
        label = "negative"
    else:
        label = "mixed"
    return {"score": round(score, 2), "label": label, "positive_count": pos, "negative_count": neg}


def analyze_sentiment(text: str) -> dict:
    """Score ``text`` from -1 to 1.

    Returns:
        {score, label (positive|negative|mixed|neutral), positive_count, negative_count}
    """
    return _summarise(*_tally(text or ""))


def split_speaker(line: str) -> tuple[str, str]:
    """Split ``"Name: text"`` into its speaker and text."""
    speaker, sep, text = line.partition(":")
    speaker = speaker.strip()
    if not sep or not speaker or len(speaker) > _MAX_SPEAKER_LEN:
        return UNKNOWN_SPEAKER, line
    return speaker, text


def sentiment_by_speaker(lines: list[str]) -> dict[str, dict]:
    """Per-speaker sentiment for transcript lines shaped like ``Name: text``."""
    counts: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for line in lines:
        speaker, text = split_speaker(line)
        pos, neg = _tally(text)
        counts[speaker][0] += pos
        counts[speaker][1] += neg
    return {speaker: _summarise(pos, neg) for speaker, (pos, neg) in counts.items()}
