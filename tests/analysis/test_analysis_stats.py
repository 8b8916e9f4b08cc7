"""Tests for local transcript statistics."""

import pytest

from analysis import (
    analyze_sentiment,
    compute_interaction_stats,
    compute_linguistic_features,
    frequent_phrases,
    sentiment_by_speaker,
)
from analysis.sentiment import split_speaker


class TestSentiment:
    @pytest.mark.parametrize(
        "text,label,score",
        [
            ("I love this, it's great", "positive", 1.0),
            ("ugh I'm so tired and sad", "negative", -1.0),
            ("great food but terrible service", "mixed", 0.0),
            ("the meeting is at noon", "neutral", 0.0),
        ],
    )
    def test_labels(self, text, label, score):
        result = analyze_sentiment(text)
        assert result["label"] == label
        assert result["score"] == score

    def test_counts(self):
        result = analyze_sentiment("haha that was fun, sorry I was late")
        assert result["positive_count"] == 2
        assert result["negative_count"] == 1

    def test_by_speaker(self):
        lines = ["Alex: this is amazing", "Sam: ugh, worst day", "no speaker here"]
        result = sentiment_by_speaker(lines)
        assert result["Alex"]["label"] == "positive"
        assert result["Sam"]["label"] == "negative"
        assert result["unknown"]["label"] == "neutral"


    def test_negation_flips_next_word(self):
        assert analyze_sentiment("not very good")["label"] == "negative"
        assert analyze_sentiment("I'm not sad at all")["label"] == "positive"
        assert analyze_sentiment("no idea, it was good")["label"] == "positive"

    def test_emoticons_and_case(self):
        result = analyze_sentiment("Great to see you :) :(  :D")
        assert result["positive_count"] == 3
        assert result["negative_count"] == 1

    def test_by_speaker_accumulates_lines(self):
        lines = ["Sam: love it", "Sam: ugh", "Sam: great"]
        assert sentiment_by_speaker(lines)["Sam"]["positive_count"] == 2
        assert sentiment_by_speaker(lines)["Sam"]["negative_count"] == 1

    def test_split_speaker(self):
        assert split_speaker("Alex: hi: there") == ("Alex", " hi: there")
        assert split_speaker("just text") == ("unknown", "just text")
        assert split_speaker(("x" * 41) + ": hi")[0] == "unknown"


class TestLinguistics:
    TEXT = "I like green tea. I like green tea!\nGreen tea is nice."

    def test_features(self):
        features = compute_linguistic_features(self.TEXT)
        assert features["word_count"] == 12
        assert features["unique_word_count"] == 6
        assert features["average_sentence_length"] == 4.0
        assert features["frequent_phrases"] == ["green tea", "i like", "like green"]

    def test_stopword_pairs_skipped(self):
        text = "out of the box. out of the blue. of the"
        assert "of the" not in frequent_phrases(text)

    def test_empty_text(self):
        features = compute_linguistic_features("")
        assert features == {
            "word_count": 0,
            "unique_word_count": 0,
            "average_sentence_length": 0.0,
            "frequent_phrases": [],
        }


class TestInteractionStats:
    def test_no_messages(self):
        assert compute_interaction_stats([]) is None

    def test_counts_and_day_span(self):
        messages = [
            {"sender": "user", "timestamp": "2024-03-01T10:00:00+00:00"},
            {"sender": "ai", "timestamp": "2024-03-01T10:00:05+00:00"},
            {"sender": "user", "timestamp": "2024-03-03T09:00:00+00:00"},
            {"sender": "ai", "timestamp": "2024-03-03T09:00:04+00:00"},
        ]
        stats = compute_interaction_stats(messages)
        assert stats["total_messages"] == 4
        assert stats["user_messages_count"] == 2
        assert stats["ai_messages_count"] == 2
        assert stats["average_messages_per_day"] == 1.33
        assert stats["first_message_date"].startswith("2024-03-01T10:00:00")
        assert stats["last_message_date"].startswith("2024-03-03T09:00:04")

    def test_single_day(self):
        messages = [
            {"sender": "user", "timestamp": "2024-03-01T10:00:00"},
            {"sender": "ai", "timestamp": "2024-03-01T23:00:00"},
        ]
        assert compute_interaction_stats(messages)["average_messages_per_day"] == 2.0

    def test_unparseable_timestamps(self):
        stats = compute_interaction_stats([{"sender": "user", "timestamp": "yesterday"}])
        assert stats["first_message_date"] is None
        assert stats["average_messages_per_day"] == 1.0
