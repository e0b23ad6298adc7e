"""
Language Level Assessment
=========================

Places a learner on a leveling system (CEFR or player levels) from a short
set of read-aloud questions.

Flow:
1. Each answer is either a transcript or base64 audio; audio is transcribed
   by Gemini first ("[Unable to transcribe]" on failure).
2. Gemini grades all answers at once against a structured assessment schema.
3. Unknown levels are coerced to the second available level; any failure
   yields a neutral fallback assessment.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..feedback import AUDIO_MIME_TYPE, extract_json_block
from ..gemini_client import GeminiClient
from ..languages import get_profile
from ..levels import available_levels, map_cefr_to_player_level
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assessment"])

UNABLE_TO_TRANSCRIBE = "[Unable to transcribe]"
NO_RESPONSE = "[No response]"


class AssessmentQuestion(BaseModel):
	id: str
	question_text: str = ""
	pronunciation_text: str
	difficulty_level: str = ""
	difficulty_score: int = Field(default=5, ge=1, le=10)
	transcript: Optional[str] = None
	audio_data: Optional[str] = None


class AssessmentRequest(BaseModel):
	language_code: Optional[str] = None
	language_name: Optional[str] = None
	cefr_supported: bool = False
	questions: List[AssessmentQuestion] = Field(default_factory=list)


class QuestionFeedback(BaseModel):
	question_number: int
	question_id: str
	target_phrase: str
	student_response: str
	score: float
	feedback: str
	strengths: List[str] = Field(default_factory=list)
	areas_for_improvement: List[str] = Field(default_factory=list)
	difficulty_assessment: str = ""


class Assessment(BaseModel):
	overall_level: str
	overall_assessment: str
	question_feedback: List[QuestionFeedback]
	strengths: List[str] = Field(default_factory=list)
	areas_for_improvement: List[str] = Field(default_factory=list)
	recommendation_reason: str = ""


def transcription_schema() -> Dict[str, Any]:
	return {
		"type": "object",
		"properties": {
			"transcription": {"type": "string"},
			"confidence": {"type": "number"},
		},
		"required": ["transcription", "confidence"],
	}


def assessment_schema() -> Dict[str, Any]:
	string_list = {"type": "array", "items": {"type": "string"}}
	return {
		"type": "object",
		"properties": {
			"overall_level": {"type": "string"},
			"overall_assessment": {"type": "string"},
			"question_feedback": {
				"type": "array",
				"items": {
					"type": "object",
					"properties": {
						"question_number": {"type": "integer"},
						"question_id": {"type": "string"},
						"target_phrase": {"type": "string"},
						"student_response": {"type": "string"},
						"score": {"type": "number"},
						"feedback": {"type": "string"},
						"strengths": string_list,
						"areas_for_improvement": string_list,
						"difficulty_assessment": {"type": "string"},
					},
					"required": ["question_number", "question_id", "target_phrase", "student_response", "score", "feedback"],
				},
			},
			"strengths": string_list,
			"areas_for_improvement": string_list,
			"recommendation_reason": {"type": "string"},
		},
		"required": ["overall_level", "overall_assessment", "question_feedback"],
	}


async def transcribe_audio(client: GeminiClient, audio_base64: str) -> str:
	try:
		raw = await client.generate_multimodal(
			[
				{"text": "Please transcribe exactly what is spoken in this audio file. Return only the spoken words, no additional commentary."},
				{"inline_data": {"mime_type": AUDIO_MIME_TYPE, "data": audio_base64}},
			],
			temperature=0.1,
			response_schema=transcription_schema(),
		)
		text = str(extract_json_block(raw).get("transcription") or "").strip()
		return text or UNABLE_TO_TRANSCRIBE
	except Exception as e:
		logger.warning("Transcription failed: %s", e)
		return UNABLE_TO_TRANSCRIBE


def build_assessment_prompt(
	language_name: str,
	level_system: str,
	levels: List[str],
	questions: List[AssessmentQuestion],
	responses: Dict[int, str],
) -> str:
	blocks = []
	for i, q in enumerate(questions):
		blocks.append(
			f"=== QUESTION {i + 1} ===\n"
			f"Task: {q.question_text}\n"
			f"Target Phrase: \"{q.pronunciation_text}\"\n"
			f"Student Response: \"{responses.get(i, NO_RESPONSE)}\"\n"
			f"Question Difficulty: {q.difficulty_level} (Score: {q.difficulty_score}/10)\n"
			f"Question ID: {q.id}"
		)
	level_list = ", ".join(f'"{l}"' for l in levels)
	return f"""
You are an expert language assessment specialist evaluating {language_name} pronunciation and speaking proficiency. Provide detailed feedback for each question AND an overall level recommendation.

ASSESSMENT CONTEXT:
- Language: {language_name}
- Level System: {level_system}
- Available Levels: {", ".join(levels)}
- Total Questions: {len(questions)}

DETAILED ASSESSMENT DATA:
{chr(10).join(blocks)}

EVALUATION CRITERIA:
1. Pronunciation accuracy (40%): individual sounds, stress, intonation
2. Language comprehension (20%): appropriate responses, vocabulary recognition
3. Difficulty progression (25%): performance across difficulty levels
4. Fluency and naturalness (15%): hesitations, rhythm, flow

LEVEL GUIDANCE (lowest to highest): roughly 0-25%, 25-45%, 45-65%, 65-80%, 80-95%, 95-100% accuracy.

INSTRUCTIONS:
1. Give feedback for EACH question (1-{len(questions)}) with a score from 0-100
2. Base the overall level on ALL responses, weighted by difficulty
3. "overall_level" must be EXACTLY one of: {level_list}
4. Be encouraging but honest

Return STRICT JSON only, following the response schema.
""".strip()


def fallback_assessment(
	level: str,
	questions: List[AssessmentQuestion],
	responses: Dict[int, str],
) -> Assessment:
	return Assessment(
		overall_level=level,
		overall_assessment="Assessment completed but detailed feedback unavailable.",
		question_feedback=[
			QuestionFeedback(
				question_number=i + 1,
				question_id=q.id,
				target_phrase=q.pronunciation_text,
				student_response=responses.get(i, NO_RESPONSE),
				score=50,
				feedback="Unable to provide detailed feedback for this question.",
				strengths=["Attempted the pronunciation"],
				areas_for_improvement=["Practice pronunciation clarity"],
				difficulty_assessment="Assessment unavailable",
			)
			for i, q in enumerate(questions)
		],
		strengths=["Completed the assessment"],
		areas_for_improvement=["Continue practicing pronunciation"],
		recommendation_reason="Based on general assessment",
	)


@router.post("/evaluate-language-level")
async def evaluate_language_level(req: AssessmentRequest, user: User = Depends(get_current_user)):
	if not req.language_code or not req.questions:
		raise HTTPException(status_code=400, detail="Language code and questions are required")

	profile = get_profile(req.language_code)
	language_name = req.language_name or (profile.name if profile else "Unknown Language")
	levels = [m.text_level for m in available_levels(req.cefr_supported)]
	level_system = "CEFR (A1, A2, B1, B2, C1, C2)" if req.cefr_supported else ", ".join(levels)
	default_level = levels[1]

	responses: Dict[int, str] = {}
	client: Optional[GeminiClient] = None
	try:
		try:
			client = GeminiClient()
		except ValueError as e:
			logger.warning("Language assessment running without Gemini: %s", e)

		for i, q in enumerate(req.questions):
			if q.transcript and q.transcript.strip():
				responses[i] = q.transcript.strip()
			elif q.audio_data:
				responses[i] = await transcribe_audio(client, q.audio_data) if client else UNABLE_TO_TRANSCRIBE

		if client is None:
			assessment = fallback_assessment(default_level, req.questions, responses)
		else:
			try:
				raw = await client.generate(
					build_assessment_prompt(language_name, level_system, levels, req.questions, responses),
					temperature=0.3,
					response_schema=assessment_schema(),
				)
				assessment = Assessment.model_validate(extract_json_block(raw))
			except Exception as e:
				logger.warning("Language assessment for %s fell back: %s", req.language_code, e)
				assessment = fallback_assessment(default_level, req.questions, responses)
	finally:
		if client is not None:
			await client.aclose()

	level = assessment.overall_level.strip().lower()
	if level not in levels:
		logger.info("Model returned unknown level %r; using %s", assessment.overall_level, default_level)
		level = default_level
	assessment = assessment.model_copy(update={"overall_level": level})

	return {
		"level": level,
		"player_level": map_cefr_to_player_level(level) if req.cefr_supported else level,
		"assessment": assessment.model_dump(),
		"transcriptions": responses,
		"message": "Language level evaluated successfully",
	}
