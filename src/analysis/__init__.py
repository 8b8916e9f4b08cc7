"""Local (non-LLM) statistics over chat transcripts and persona chats."""

from .interaction import compute_interaction_stats
from .linguistics import compute_linguistic_features, frequent_phrases
from .sentiment import analyze_sentiment, sentiment_by_speaker

__all__ = [
    "analyze_sentiment",
    "sentiment_by_speaker",
    "compute_linguistic_features",
    "frequent_phrases",
    "compute_interaction_stats",
]
