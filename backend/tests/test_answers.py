import json

import pytest

from aibubu.models import Tutorial
from aibubu.routers import answers
from aibubu.routers.answers import parse_validation_response
from conftest import FakeGemini, no_gemini, use_fake_gemini


@pytest.fixture()
def tutorial(db):
	row = Tutorial(
		id="math-1",
		title="Adding Apples",
		tutorial_type="maths",
		difficulty_level=2,
		age_min=6,
		age_max=8,
		questions_json=json.dumps({"questions": [{"id": "q1", "question": "What is 2 + 3?", "correct": "5"}]}),
	)
	db.add(row)
	db.commit()
	return row


def _body(**overrides):
	body = {"tutorial_id": "math-1", "question_id": "q1", "answer": "5", "tutorial_type": "maths"}
	body.update(overrides)
	return body


def test_parse_json_verdict_clamps_points():
	verdict = parse_validation_response('Here you go: {"isCorrect": true, "feedback": "Yes!", "points": 15}')
	assert verdict.is_correct is True
	assert verdict.points == 10
	assert verdict.feedback == "Yes!"
	assert parse_validation_response('{"isCorrect": false, "points": "lots"}').points == 0


def test_parse_heuristic_without_json():
	good = parse_validation_response("That answer is correct, well done")
	assert good.is_correct is True and good.points == 8
	bad = parse_validation_response("Not quite, try again")
	assert bad.is_correct is False and bad.points == 3
	assert bad.explanation


def test_validate_answer(auth_client, tutorial, monkeypatch):
	fake = FakeGemini(reply={"isCorrect": True, "feedback": "Brilliant adding!", "points": 9, "explanation": None})
	use_fake_gemini(monkeypatch, answers, fake)
	r = auth_client.post("/validate-answer", json=_body())
	assert r.status_code == 200
	assert r.json() == {"is_correct": True, "feedback": "Brilliant adding!", "points": 9, "explanation": None}
	prompt = fake.calls[0]["prompt"]
	assert "What is 2 + 3?" in prompt
	assert "Expected answer: 5" in prompt
	assert "Ages 5-7" in prompt


def test_missing_fields(auth_client):
	r = auth_client.post("/validate-answer", json={"tutorial_id": "math-1"})
	assert r.status_code == 400


def test_invalid_tutorial_type(auth_client, tutorial):
	r = auth_client.post("/validate-answer", json=_body(tutorial_type="cooking"))
	assert r.status_code == 400


def test_unknown_tutorial_and_question(auth_client, tutorial):
	assert auth_client.post("/validate-answer", json=_body(tutorial_id="nope")).status_code == 404
	assert auth_client.post("/validate-answer", json=_body(question_id="q9")).status_code == 404


def test_model_unavailable(auth_client, tutorial, monkeypatch):
	no_gemini(monkeypatch, answers)
	r = auth_client.post("/validate-answer", json=_body())
	assert r.status_code == 502


def test_parse_fenced_and_non_object_replies():
	fenced = parse_validation_response('```json\n{"isCorrect": true, "feedback": "Spot on", "points": 7}\n```')
	assert fenced.is_correct is True and fenced.points == 7
	# A bare JSON array carries no verdict, so the keyword check decides
	listed = parse_validation_response('["correct"]')
	assert listed.is_correct is True and listed.points == 8
