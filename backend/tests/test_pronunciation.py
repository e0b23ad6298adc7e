import asyncio
import base64
import random

from aibubu.pronunciation import validate_audio, validate_text
from conftest import FakeGemini, StubRng


def _reply(correct_language=True, detected="es"):
	return {
		"feedback": "Muy bien!",
		"issues": [],
		"tips": ["Practice the vowels"],
		"correct_language": correct_language,
		"detected_language": detected,
	}


def test_wrong_language_is_capped():
	fake = FakeGemini(reply=_reply(correct_language=False, detected="fr"))
	result = asyncio.run(validate_text("chien", "cat", "en", client=fake))
	assert result.score <= 20
	assert result.is_correct is False
	assert result.language_mismatch is True
	assert result.detected_language == "fr"


def test_perfect_match_is_pulled_below_100():
	fake = FakeGemini(reply=_reply())
	for seed in range(20):
		result = asyncio.run(validate_text("Hola!", "hola", "es", rng=random.Random(seed), client=fake))
		assert 60 <= result.score < 100
		assert result.language_mismatch is False


def test_close_match_is_correct():
	fake = FakeGemini(reply=_reply())
	result = asyncio.run(validate_text("hola", "hola", "es", rng=StubRng(randint_value=5), client=fake))
	assert result.score == 95
	assert result.is_correct is True
	assert result.pronunciation_tips == ["Practice the vowels"]


def test_unclear_transcript_never_correct():
	fake = FakeGemini(reply=_reply(correct_language=False, detected="en"))
	for seed in range(20):
		result = asyncio.run(validate_text("[unclear audio]", "hola", "es", rng=random.Random(seed), client=fake))
		assert 10 <= result.score < 40
		assert result.is_correct is False
		assert result.language_mismatch is False
		assert result.detected_language == "es"


def test_empty_transcript_uses_unclear_branch():
	fake = FakeGemini(reply=_reply())
	result = asyncio.run(validate_text("", "hola", "es", rng=StubRng(randrange_value=33), client=fake))
	assert result.score == 33
	assert result.is_correct is False


def test_feedback_failure_keeps_local_score():
	fake = FakeGemini(error=ValueError("bad json"))
	result = asyncio.run(validate_text("hola", "hola", "es", rng=StubRng(randint_value=5), client=fake))
	assert result.score == 95
	assert result.specific_issues == ["Analysis system temporarily unavailable"]


def test_audio_decode_error_returns_fallback():
	fake = FakeGemini(reply=_reply())
	result = asyncio.run(validate_audio("not base64!!", "cat", "en", client=fake))
	assert result.score == 25
	assert result.specific_issues == ["Audio processing error"]
	assert fake.calls == []


def test_audio_score_is_clamped_and_capped():
	audio = base64.b64encode(b"fake-webm").decode()
	fake = FakeGemini(reply={"transcript": "chien", "target_word": "cat", "score": 130, **_reply(False, "fr")})
	result = asyncio.run(validate_audio(audio, "cat", "en", client=fake))
	assert result.score == 20
	assert result.language_mismatch is True

	fake = FakeGemini(reply={"transcript": "cat", "target_word": "cat", "score": 130, **_reply(True, "en")})
	result = asyncio.run(validate_audio(audio, "cat", "en", "/kæt/", client=fake))
	assert result.score == 100
	assert result.is_correct is True
	assert result.phonetic_analysis == "/kæt/"
