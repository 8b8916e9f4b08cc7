"""Tests for the persona prompt flows."""

import pytest

from cli.retry import llm_retry
from fakes import SAMPLE_CHAT, FakeProvider, json_reply
from flows import (
    MISSING_DESCRIPTION_ANSWER,
    FlowError,
    analyze_persona_insights,
    ask_about_persona,
    create_persona_from_chat,
    develop_persona_personality,
    generate_response,
    parse_json_object,
)
from llm import LLMAuthError, LLMRateLimitError
from observability import metrics

NO_WAIT = llm_retry(max_attempts=2, min_wait=0, max_wait=0)


class TestParseJsonObject:
    def test_plain(self):
        assert parse_json_object('{"answer": "yes"}') == {"answer": "yes"}

    def test_code_fence(self):
        assert parse_json_object('```json\n{"answer": "yes"}\n```') == {"answer": "yes"}

    def test_leading_prose(self):
        text = 'Sure! Here it is: {"answer": "yes"} hope that helps'
        assert parse_json_object(text) == {"answer": "yes"}

    @pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2]", "{broken"])
    def test_rejects(self, text):
        with pytest.raises(FlowError):
            parse_json_object(text)


class TestCreatePersona:
    def test_returns_description(self):
        provider = FakeProvider([json_reply(persona_description="Chatty and warm.")])
        result = create_persona_from_chat(provider, {"chat_history": SAMPLE_CHAT}, retrying=NO_WAIT)

        assert result.persona_description == "Chatty and warm."
        call = provider.calls[0]
        assert call["json_mode"] is True
        assert SAMPLE_CHAT in call["messages"][-1]["content"]
        assert metrics.get("flow.create_persona_from_chat.calls") == 1

    def test_blank_description_is_error(self):
        provider = FakeProvider([json_reply(persona_description="  ")])
        with pytest.raises(FlowError, match="no persona_description"):
            create_persona_from_chat(provider, {"chat_history": SAMPLE_CHAT}, retrying=NO_WAIT)
        assert metrics.get("flow.create_persona_from_chat.failures") == 1

    def test_wrong_shape_is_error(self):
        provider = FakeProvider([json_reply(description="x")])
        with pytest.raises(FlowError, match="unexpected shape"):
            create_persona_from_chat(provider, {"chat_history": SAMPLE_CHAT}, retrying=NO_WAIT)

    def test_invalid_input(self):
        with pytest.raises(FlowError, match="Invalid input"):
            create_persona_from_chat(FakeProvider(), {"chat_history": ""}, retrying=NO_WAIT)

    def test_rate_limit_is_retried(self):
        provider = FakeProvider(
            [LLMRateLimitError("slow down"), json_reply(persona_description="Calm.")]
        )
        result = create_persona_from_chat(provider, {"chat_history": SAMPLE_CHAT}, retrying=NO_WAIT)
        assert result.persona_description == "Calm."
        assert len(provider.calls) == 2

    def test_auth_error_not_retried(self):
        provider = FakeProvider([LLMAuthError("bad key"), json_reply(persona_description="x")])
        with pytest.raises(LLMAuthError):
            create_persona_from_chat(provider, {"chat_history": SAMPLE_CHAT}, retrying=NO_WAIT)
        assert len(provider.calls) == 1


class TestAnalyzeInsights:
    def test_unknown_attributes_marked(self):
        provider = FakeProvider([json_reply(personality_insights="Extraverted.")])
        result = analyze_persona_insights(
            provider, {"chat_history": SAMPLE_CHAT, "mbti_type": "ENFP"}, retrying=NO_WAIT
        )

        assert result.personality_insights == "Extraverted."
        prompt = provider.calls[0]["messages"][-1]["content"]
        assert "MBTI type (if known): ENFP" in prompt
        assert "Age (if known): Not specified" in prompt
        assert "Gender (if known): Not specified" in prompt


class TestAskAboutPersona:
    def test_answers_from_description(self):
        provider = FakeProvider([json_reply(answer="They love coffee.")])
        result = ask_about_persona(
            provider,
            {"persona_description": "Loves coffee and football.", "question": "Hobbies?"},
            retrying=NO_WAIT,
        )
        assert result.answer == "They love coffee."

    def test_blank_description_skips_llm(self):
        provider = FakeProvider()
        result = ask_about_persona(
            provider, {"persona_description": "  ", "question": "Hobbies?"}, retrying=NO_WAIT
        )
        assert result.answer == MISSING_DESCRIPTION_ANSWER
        assert provider.calls == []

    def test_none_provider_allowed_for_blank_description(self):
        result = ask_about_persona(None, {"question": "Anything?"})
        assert result.answer == MISSING_DESCRIPTION_ANSWER


class TestDevelopPersona:
    def test_includes_prompts_and_name(self):
        provider = FakeProvider([json_reply(new_persona_description="Now also a chef.")])
        result = develop_persona_personality(
            provider,
            {
                "current_persona_description": "Friendly.",
                "development_prompts": "Make them a chef",
                "name": "Alex",
                "age": 30,
            },
            retrying=NO_WAIT,
        )
        assert result.new_persona_description == "Now also a chef."
        prompt = provider.calls[0]["messages"][-1]["content"]
        assert "Make them a chef" in prompt
        assert "- Name: Alex" in prompt
        assert "- Age: 30" in prompt


class TestGenerateResponse:
    def test_history_precedes_input(self):
        provider = FakeProvider([json_reply(response="haha yeah")])
        history = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hey!"},
        ]
        result = generate_response(
            provider,
            {"persona": "Casual texter.", "input": "what's up", "history": history},
            retrying=NO_WAIT,
        )

        assert result.response == "haha yeah"
        messages = provider.calls[0]["messages"]
        assert messages[:2] == history
        assert messages[-1]["content"].startswith("what's up")
        assert "Casual texter." in provider.calls[0]["system"]
        assert "General conversation" in provider.calls[0]["system"]

    def test_empty_response_field_allowed(self):
        provider = FakeProvider([json_reply(response="")])
        result = generate_response(provider, {"persona": "p", "input": "hi"}, retrying=NO_WAIT)
        assert result.response == ""
