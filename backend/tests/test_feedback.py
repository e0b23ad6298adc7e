import asyncio

import httpx
import pytest

from aibubu import feedback
from aibubu.feedback import (
	AUDIO_MIME_TYPE,
	audio_response_schema,
	build_audio_prompt,
	extract_json_block,
	feedback_response_schema,
	score_audio,
	score_text,
)
from aibubu.settings import settings
from conftest import FakeGemini, use_fake_gemini


GOOD_TEXT_REPLY = {
	"feedback": "Great job!",
	"issues": [],
	"tips": ["Keep it up"],
	"correct_language": True,
	"detected_language": "es",
}


def test_extract_json_block_tolerates_fences():
	assert extract_json_block('```json\n{"a": 1}\n```') == {"a": 1}
	assert extract_json_block('{"a": 2}') == {"a": 2}
	with pytest.raises(ValueError):
		extract_json_block("no json here")


def test_audio_schema_extends_feedback_schema():
	schema = audio_response_schema()
	assert set(feedback_response_schema()["required"]) <= set(schema["required"])
	assert {"transcript", "target_word", "score"} <= set(schema["properties"])


def test_audio_prompt_embeds_bands():
	prompt = build_audio_prompt("gato", "es", "/ˈɡa.to/", "hard")
	assert 'TARGET WORD: "gato"' in prompt
	assert "HARD mode" in prompt
	assert "95-100" in prompt
	assert "/ˈɡa.to/" in prompt


def test_score_text_parses_structured_reply():
	fake = FakeGemini(reply=GOOD_TEXT_REPLY)
	result = asyncio.run(score_text("hola", "hola", "es", 90, client=fake))
	assert result.feedback == "Great job!"
	assert result.correct_language is True
	assert result.is_fallback is False
	assert fake.calls[0]["response_schema"] == feedback_response_schema()
	# Caller-owned clients stay open
	assert fake.closed is False


def test_score_text_falls_back_on_network_error():
	fake = FakeGemini(error=httpx.ConnectError("boom"))
	result = asyncio.run(score_text("hola", "hola", "es", 90, client=fake))
	assert result.is_fallback is True
	assert result.issues == ["Analysis system temporarily unavailable"]
	assert result.correct_language is True
	assert result.detected_language == "es"


def test_score_text_falls_back_on_invalid_payload():
	fake = FakeGemini(reply={"feedback": "missing fields"})
	result = asyncio.run(score_text("hola", "hola", "es", 90, client=fake))
	assert result.is_fallback is True


def test_score_text_without_api_key(monkeypatch):
	monkeypatch.setattr(settings, "gemini_api_key", None)
	result = asyncio.run(score_text("hola", "hola", "es", 90))
	assert result.is_fallback is True


def test_score_audio_falls_back_on_error():
	fake = FakeGemini(error=RuntimeError("Unexpected Gemini response"))
	result = asyncio.run(score_audio(b"\x00\x01", "cat", "en", client=fake))
	assert result.score == 25
	assert result.issues == ["Audio processing error"]
	assert len(result.tips) == 3
	assert result.correct_language is True
	assert result.is_fallback is True


def test_score_audio_sends_inline_audio(monkeypatch):
	fake = FakeGemini(reply={
		"transcript": "kat",
		"target_word": "cat",
		"score": 88,
		**GOOD_TEXT_REPLY,
		"detected_language": "en",
	})
	use_fake_gemini(monkeypatch, feedback, fake)
	result = asyncio.run(score_audio(b"\x00\x01", "cat", "en"))
	assert result.score == 88
	assert result.transcript == "kat"
	inline = fake.calls[0]["parts"][1]["inline_data"]
	assert inline == {"mime_type": AUDIO_MIME_TYPE, "data": "AAE="}
	assert fake.calls[0]["response_schema"] == audio_response_schema()
	# Clients created internally are closed
	assert fake.closed is True
