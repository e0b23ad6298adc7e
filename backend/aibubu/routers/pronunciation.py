from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from .. import pronunciation
from ..schemas import PronunciationRequest, PronunciationResponse
from ..scoring import suggestions
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pronunciation"])


@router.post("/validate-pronunciation", response_model=PronunciationResponse)
async def validate_pronunciation(req: PronunciationRequest, user: User = Depends(get_current_user)):
	"""Score a pronunciation attempt from recorded audio or a transcript.

	Audio takes precedence when both are supplied. Model failures degrade to
	a low-confidence fallback result rather than an error response.
	"""
	target = (req.target_word or "").strip()
	language = (req.language or "").strip()
	if not target or not language:
		raise HTTPException(status_code=400, detail="Missing required fields: target_word, language")

	if req.audio_data:
		validation = await pronunciation.validate_audio(
			req.audio_data,
			target,
			language,
			req.phonetic_target,
			req.difficulty_level,
			req.temperature,
		)
	else:
		if req.transcript is None:
			raise HTTPException(status_code=400, detail="Either audio_data or transcript is required")
		validation = await pronunciation.validate_text(
			req.transcript,
			target,
			language,
			req.phonetic_target,
			req.temperature,
		)

	logger.info(
		"Pronunciation of %r (%s) by %s scored %d", target, language, user.username, validation.score
	)
	return PronunciationResponse(
		success=True,
		validation=validation,
		suggestions=suggestions(validation, language),
	)
