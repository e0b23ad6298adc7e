from aibubu.routers import assessment
from conftest import FakeGemini, no_gemini, use_fake_gemini


QUESTIONS = [
	{"id": "q1", "question_text": "Say hello", "pronunciation_text": "hola", "difficulty_level": "easy", "difficulty_score": 2, "transcript": "ola"},
	{"id": "q2", "question_text": "Introduce yourself", "pronunciation_text": "me llamo Ana", "difficulty_level": "medium", "difficulty_score": 5, "audio_data": "AAE="},
]


def _assessment_reply(level):
	return {
		"overall_level": level,
		"overall_assessment": "Solid start",
		"question_feedback": [
			{"question_number": 1, "question_id": "q1", "target_phrase": "hola", "student_response": "ola", "score": 80, "feedback": "Good"},
		],
		"strengths": ["vowels"],
		"areas_for_improvement": ["the silent h"],
		"recommendation_reason": "Consistent answers",
	}


def test_requires_language_and_questions(auth_client):
	assert auth_client.post("/evaluate-language-level", json={"questions": QUESTIONS}).status_code == 400
	assert auth_client.post("/evaluate-language-level", json={"language_code": "es"}).status_code == 400


def test_fallback_without_model(auth_client, monkeypatch):
	no_gemini(monkeypatch, assessment)
	r = auth_client.post("/evaluate-language-level", json={"language_code": "es", "cefr_supported": True, "questions": QUESTIONS})
	assert r.status_code == 200
	body = r.json()
	assert body["level"] == "a2"
	assert body["player_level"] == "beginner"
	assert body["transcriptions"] == {"0": "ola", "1": "[Unable to transcribe]"}
	assert len(body["assessment"]["question_feedback"]) == 2
	assert body["assessment"]["question_feedback"][0]["score"] == 50


def test_model_assessment(auth_client, monkeypatch):
	fake = FakeGemini(reply=_assessment_reply("B1"), multimodal_reply={"transcription": "me yamo Ana", "confidence": 0.9})
	use_fake_gemini(monkeypatch, assessment, fake)
	r = auth_client.post("/evaluate-language-level", json={"language_code": "es", "cefr_supported": True, "questions": QUESTIONS})
	body = r.json()
	assert body["level"] == "b1"
	assert body["player_level"] == "intermediate"
	assert body["transcriptions"]["1"] == "me yamo Ana"
	assert "Spanish" in fake.calls[-1]["prompt"]
	assert fake.closed is True


def test_unknown_level_is_coerced(auth_client, monkeypatch):
	use_fake_gemini(monkeypatch, assessment, FakeGemini(reply=_assessment_reply("wizard"), multimodal_reply="garbage"))
	r = auth_client.post("/evaluate-language-level", json={"language_code": "ko", "questions": QUESTIONS})
	body = r.json()
	assert body["level"] == "beginner"
	assert body["player_level"] == "beginner"
	assert body["transcriptions"]["1"] == "[Unable to transcribe]"
