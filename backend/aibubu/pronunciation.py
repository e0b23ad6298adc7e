from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

from . import feedback as feedback_gen
from .gemini_client import GeminiClient
from .schemas import ScoringResult
from .scoring import (
	is_unclear,
	normalize,
	preliminary_score,
	reconcile,
	similarity,
	unclear_score,
)

logger = logging.getLogger(__name__)

UNCLEAR_FEEDBACK = "I couldn't clearly hear your pronunciation. Please try speaking more clearly and closer to the microphone."
UNCLEAR_ISSUES = ["Audio was unclear", "Try speaking louder and clearer"]
UNCLEAR_TIPS = [
	"Speak directly into the microphone",
	"Ensure you're in a quiet environment",
	"Pronounce each syllable clearly",
]


async def validate_audio(
	audio_data: str,
	target: str,
	language: str,
	phonetic_target: Optional[str] = None,
	difficulty: str = "medium",
	temperature: float = 0.5,
	*,
	client: Optional[GeminiClient] = None,
) -> ScoringResult:
	"""Score a base64 recording; the model both transcribes and scores it."""
	try:
		audio_bytes = base64.b64decode(audio_data)
	except (binascii.Error, ValueError) as e:
		logger.warning("Could not decode audio payload for %r: %s", target, e)
		analysis = feedback_gen.audio_fallback(language, target)
	else:
		analysis = await feedback_gen.score_audio(
			audio_bytes,
			target,
			language,
			phonetic_target,
			difficulty,
			temperature,
			client=client,
		)
	return reconcile(analysis.score, analysis, phonetic_target=phonetic_target)


async def validate_text(
	transcript: str,
	target: str,
	language: str,
	phonetic_target: Optional[str] = None,
	temperature: float = 0.5,
	*,
	rng=None,
	client: Optional[GeminiClient] = None,
) -> ScoringResult:
	"""Score a transcript against the target phrase.

	Unclear or empty transcripts get a low random score and are never marked
	correct; the model is still asked for encouraging feedback.
	"""
	if is_unclear(transcript):
		score = unclear_score(rng)
		analysis = await feedback_gen.score_text(
			transcript,
			target,
			language,
			score,
			phonetic_target,
			temperature,
			client=client,
		)
		return ScoringResult(
			score=score,
			feedback=analysis.feedback or UNCLEAR_FEEDBACK,
			specific_issues=analysis.issues or UNCLEAR_ISSUES,
			pronunciation_tips=analysis.tips or UNCLEAR_TIPS,
			is_correct=False,
			phonetic_analysis=phonetic_target,
			language_mismatch=False,
			detected_language=language,
		)

	sim = similarity(normalize(transcript, language), normalize(target, language))
	score = preliminary_score(sim, rng)
	logger.debug("Similarity %.3f for %r vs %r -> preliminary %d", sim, transcript, target, score)
	analysis = await feedback_gen.score_text(
		transcript,
		target,
		language,
		score,
		phonetic_target,
		temperature,
		client=client,
	)
	return reconcile(score, analysis, phonetic_target=phonetic_target)
