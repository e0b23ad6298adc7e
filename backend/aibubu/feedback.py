"""
Structured pronunciation feedback from Gemini.

Both entry points ask the model for JSON matching a declared response schema,
validate it with pydantic and never raise: on any failure (missing key,
network, HTTP status, unparsable or invalid payload) a fixed fallback result
with ``is_fallback=True`` is returned instead.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .gemini_client import GeminiClient
from .languages import language_codes_prompt
from .schemas import AudioFeedbackResult, FeedbackResult
from .scoring import bands_for

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPE = "audio/webm"


def feedback_response_schema() -> Dict[str, Any]:
	return {
		"type": "object",
		"properties": {
			"feedback": {"type": "string", "description": "Encouraging feedback about the pronunciation attempt"},
			"issues": {"type": "array", "items": {"type": "string"}, "description": "Specific pronunciation issues identified"},
			"tips": {"type": "array", "items": {"type": "string"}, "description": "Practical tips for improvement"},
			"correct_language": {"type": "boolean", "description": "Whether user spoke in the correct language"},
			"detected_language": {"type": "string", "description": "Language code detected in the text"},
		},
		"required": ["feedback", "issues", "tips", "correct_language", "detected_language"],
	}


def audio_response_schema() -> Dict[str, Any]:
	schema = feedback_response_schema()
	properties = {
		"transcript": {"type": "string", "description": "Exact phonetic transcription of what you heard"},
		"target_word": {"type": "string", "description": "The target word being practiced"},
		"score": {"type": "number", "description": "Pronunciation accuracy score 0-100"},
		**schema["properties"],
	}
	return {
		"type": "object",
		"properties": properties,
		"required": ["transcript", "target_word", "score", *schema["required"]],
	}


def extract_json_block(text: str) -> Dict[str, Any]:
	"""Parse the model output, tolerating prose or fences around the object."""
	try:
		return json.loads(text)
	except Exception:
		pass
	match = re.search(r"\{[\s\S]*\}", text or "")
	if match:
		try:
			return json.loads(match.group(0))
		except Exception:
			pass
	raise ValueError("Failed to parse JSON from Gemini output")


# ============================================================================
# PROMPTS
# ============================================================================

def build_audio_prompt(target: str, language: str, phonetic_target: Optional[str], difficulty: str) -> str:
	phonetic_line = f"CORRECT PRONUNCIATION: {phonetic_target}" if phonetic_target else ""
	return f"""
You are an expert pronunciation coach with perfect hearing. Analyze this audio recording where a student is attempting to pronounce a specific word.

CRITICAL TASK: Compare the student's pronunciation in the audio against this exact target:

TARGET WORD: "{target}"
TARGET LANGUAGE: {language}
{phonetic_line}

YOUR ANALYSIS MUST INCLUDE:

1. TRANSCRIPTION: What did you actually hear the student say? (exact phonetic transcription)
2. PRONUNCIATION ACCURACY: Compare their pronunciation to "{target}" specifically
   - Score: 0-100 (how close to the target word "{target}")
   - Consider: vowel sounds, consonants, stress patterns, intonation
3. LANGUAGE VERIFICATION: Are they speaking in {language}?
4. SPECIFIC ISSUES: What sounds are wrong compared to "{target}"?
5. IMPROVEMENT TIPS: How to pronounce "{target}" correctly

SCORING GUIDELINES ({difficulty.upper()} mode):
{bands_for(difficulty, target)}

Return STRICT JSON only, following the response schema.
""".strip()


def build_text_prompt(
	transcript: str,
	target: str,
	language: str,
	score: int,
	phonetic_target: Optional[str],
) -> str:
	return f"""
You are a pronunciation coach helping a language learner. Analyze this pronunciation attempt:

Target word/phrase: "{target}" in {language}
User's attempt: "{transcript}"
Phonetic target: {phonetic_target or 'Not provided'}
Similarity score: {score}/100

IMPORTANT: First check if the user is speaking in the correct language. The user should be practicing {language}.

Please provide:
1. Language validation: Is the user speaking in {language} or a different language?
2. If wrong language: Clearly explain they need to speak in {language}
3. If correct language: Encouraging feedback (2-3 sentences)
4. Specific pronunciation issues (if any)
5. 2-3 practical tips for improvement

Language codes:
{language_codes_prompt()}

Be encouraging and constructive. Focus on specific sounds or patterns they can practice.
Return STRICT JSON only, following the response schema.
""".strip()


# ============================================================================
# FALLBACKS
# ============================================================================

def audio_fallback(language: str, target: str = "") -> AudioFeedbackResult:
	return AudioFeedbackResult(
		transcript="",
		target_word=target,
		score=25,
		feedback="Sorry, I had trouble analyzing your audio. Please check your microphone and try again.",
		issues=["Audio processing error"],
		tips=[
			"Ensure your microphone is working",
			"Try recording in a quieter environment",
			"Speak clearly and at normal volume",
		],
		correct_language=True,
		detected_language=language,
		is_fallback=True,
	)


def text_fallback(target: str, language: str) -> FeedbackResult:
	return FeedbackResult(
		feedback=f'I had trouble analyzing your pronunciation of "{target}". Your effort shows dedication to learning!',
		issues=["Analysis system temporarily unavailable"],
		tips=[
			f'Keep practicing "{target}"',
			"Try recording in a quieter environment",
			"Speak clearly and at normal volume",
		],
		correct_language=True,
		detected_language=language,
		is_fallback=True,
	)


# ============================================================================
# MODEL CALLS
# ============================================================================

async def score_audio(
	audio_bytes: bytes,
	target: str,
	language: str,
	phonetic_target: Optional[str] = None,
	difficulty: str = "medium",
	temperature: float = 0.5,
	*,
	client: Optional[GeminiClient] = None,
) -> AudioFeedbackResult:
	owns_client = client is None
	try:
		if client is None:
			client = GeminiClient()
		parts = [
			{"text": build_audio_prompt(target, language, phonetic_target, difficulty)},
			{"inline_data": {"mime_type": AUDIO_MIME_TYPE, "data": base64.b64encode(audio_bytes).decode("ascii")}},
		]
		raw = await client.generate_multimodal(
			parts,
			temperature=temperature,
			response_schema=audio_response_schema(),
		)
		data = extract_json_block(raw)
		result = AudioFeedbackResult.model_validate(data)
		if not result.detected_language:
			result = result.model_copy(update={"detected_language": language})
		return result
	except (httpx.HTTPError, ValidationError, ValueError, RuntimeError) as e:
		logger.warning("Audio pronunciation analysis failed for %r: %s", target, e)
		return audio_fallback(language, target)
	except Exception as e:
		logger.exception("Unexpected error during audio pronunciation analysis: %s", e)
		return audio_fallback(language, target)
	finally:
		if owns_client and client is not None:
			await client.aclose()


async def score_text(
	transcript: str,
	target: str,
	language: str,
	score: int,
	phonetic_target: Optional[str] = None,
	temperature: float = 0.5,
	*,
	client: Optional[GeminiClient] = None,
) -> FeedbackResult:
	owns_client = client is None
	try:
		if client is None:
			client = GeminiClient()
		raw = await client.generate(
			build_text_prompt(transcript, target, language, score, phonetic_target),
			temperature=temperature,
			response_schema=feedback_response_schema(),
			allow_fallback=False,
		)
		data = extract_json_block(raw)
		result = FeedbackResult.model_validate(data)
		logger.debug("Structured feedback for %r: %s", target, result)
		return result
	except (httpx.HTTPError, ValidationError, ValueError, RuntimeError) as e:
		logger.warning("Text pronunciation feedback failed for %r: %s", target, e)
		return text_fallback(target, language)
	except Exception as e:
		logger.exception("Unexpected error generating pronunciation feedback: %s", e)
		return text_fallback(target, language)
	finally:
		if owns_client and client is not None:
			await client.aclose()
