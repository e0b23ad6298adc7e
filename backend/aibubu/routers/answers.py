"""
Answer Validation
=================

Judges a child's free-text answer to a tutorial question with Gemini.

The model is asked for a small JSON verdict. When the reply contains no
parsable JSON, a keyword heuristic decides correctness so the child always
gets feedback.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..feedback import extract_json_block
from ..gemini_client import GeminiClient
from ..models import Tutorial
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["answers"])

TUTORIAL_TYPES = ("maths", "thinking", "reading", "writing", "science", "agent", "speaking")
MAX_POINTS = 10


class ValidationRequest(BaseModel):
	tutorial_id: Optional[str] = None
	question_id: Optional[str] = None
	answer: Optional[str] = None
	tutorial_type: Optional[str] = None


class ValidationResponse(BaseModel):
	is_correct: bool
	feedback: str
	points: int
	explanation: Optional[str] = None


def _tutorial_questions(tutorial: Tutorial) -> List[Dict[str, Any]]:
	try:
		data = json.loads(tutorial.questions_json or "{}")
	except (TypeError, ValueError):
		logger.warning("Tutorial %s has malformed questions JSON", tutorial.id)
		return []
	questions = data.get("questions") if isinstance(data, dict) else data
	return [q for q in (questions or []) if isinstance(q, dict)]


def build_validation_prompt(tutorial_type: str, question: Dict[str, Any], answer: str, tutorial: Tutorial) -> str:
	base = f"""
You are an AI tutor helping children learn. Please evaluate this student's answer with kindness and constructive feedback.

IMPORTANT SAFETY GUIDELINES:
- This is content for children aged {tutorial.age_min}-{tutorial.age_max}
- Keep all content completely appropriate, safe, and educational
- Never include anything sexual, violent, inappropriate, or age-restricted
- If student's answer contains inappropriate content, gently redirect to the learning topic
- Focus purely on educational content and positive encouragement

Tutorial: {tutorial.title}
Subject: {tutorial_type}
Age Group: {tutorial.age_min}-{tutorial.age_max} years
Difficulty Level: {tutorial.difficulty_level}/6

Question: {question.get("question", "")}
Student's Answer: {answer}

Please respond in JSON format with:
{{
  "isCorrect": boolean,
  "feedback": "encouraging feedback message (50-100 words)",
  "points": number (0-10 based on answer quality and age-appropriate expectations),
  "explanation": "brief explanation if answer needs improvement"
}}

Age-Appropriate Guidelines:
- Ages 5-7: Very simple language, lots of encouragement, focus on effort over perfection
- Ages 8-10: Encouraging but more detailed feedback, introduce reasoning concepts
- Ages 11-12: Challenge critical thinking while remaining supportive and constructive

Difficulty-Based Expectations:
- Level 1-2: Award points generously for any reasonable attempt
- Level 3-4: Expect more detailed reasoning but still encourage effort
- Level 5-6: Higher standards but provide constructive guidance for improvement
"""
	correct = question.get("correct")
	if tutorial_type == "maths":
		extra = """
Math-specific criteria:
- Check calculation accuracy
- Award points for correct method even if final answer is wrong
- Look for logical reasoning steps
- Consider alternative valid approaches
"""
		if correct:
			extra += f"Expected answer: {correct}\n"
	elif tutorial_type == "thinking":
		extra = """
Critical thinking criteria:
- Evaluate reasoning quality over "right" answers
- Look for evidence-based conclusions
- Consider multiple perspectives shown
- Reward creative problem-solving approaches
"""
	elif tutorial_type == "reading":
		extra = """
Reading comprehension criteria:
- Check understanding of main ideas
- Look for evidence from the text
- Evaluate inference and analysis skills
- Consider vocabulary understanding
"""
		if correct:
			extra += f"Key points to look for: {correct}\n"
	elif tutorial_type == "writing":
		extra = """
Creative writing criteria:
- Evaluate creativity and imagination
- Check for coherent narrative structure
- Consider age-appropriate vocabulary use
- Grammar is less important than creativity
"""
	elif tutorial_type == "science":
		extra = """
Science criteria:
- Check for scientific accuracy
- Evaluate understanding of concepts
- Look for evidence-based reasoning
"""
		if correct:
			extra += f"Scientific concept: {correct}\n"
	else:
		extra = ""
	return (base + extra).strip()


def _coerce_points(value: Any) -> int:
	try:
		points = int(float(value))
	except (TypeError, ValueError):
		points = 0
	return max(0, min(MAX_POINTS, points))


def parse_validation_response(text: str) -> ValidationResponse:
	try:
		parsed = extract_json_block(text or "")
		return ValidationResponse(
			is_correct=bool(parsed.get("isCorrect")),
			feedback=parsed.get("feedback") or "Great effort! Keep learning!",
			points=_coerce_points(parsed.get("points")),
			explanation=parsed.get("explanation"),
		)
	except (ValueError, AttributeError) as e:
		logger.info("No JSON verdict in answer validation reply, using keyword check: %s", e)

	lowered = (text or "").lower()
	is_correct = any(word in lowered for word in ("correct", "right", "good"))
	if is_correct:
		return ValidationResponse(
			is_correct=True,
			feedback="Well done! Your answer shows good understanding.",
			points=8,
		)
	return ValidationResponse(
		is_correct=False,
		feedback="Good try! There's room for improvement - keep practicing!",
		points=3,
		explanation="Consider reviewing the material and trying again.",
	)


@router.post("/validate-answer", response_model=ValidationResponse)
async def validate_answer(req: ValidationRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if not req.tutorial_id or not req.question_id or not req.answer or not req.tutorial_type:
		raise HTTPException(status_code=400, detail="Missing required fields")
	if req.tutorial_type not in TUTORIAL_TYPES:
		raise HTTPException(status_code=400, detail=f"tutorial_type must be one of {', '.join(TUTORIAL_TYPES)}")

	tutorial = db.get(Tutorial, req.tutorial_id)
	if tutorial is None:
		raise HTTPException(status_code=404, detail="Tutorial not found")
	question = next((q for q in _tutorial_questions(tutorial) if str(q.get("id")) == req.question_id), None)
	if question is None:
		raise HTTPException(status_code=404, detail="Question not found")

	prompt = build_validation_prompt(req.tutorial_type, question, req.answer, tutorial)
	client: Optional[GeminiClient] = None
	try:
		client = GeminiClient()
		text = await client.generate(prompt, temperature=0.3)
	except Exception as e:
		logger.error("Answer validation call failed: %s", e)
		raise HTTPException(status_code=502, detail="Answer validation is temporarily unavailable")
	finally:
		if client is not None:
			await client.aclose()

	return parse_validation_response(text)
