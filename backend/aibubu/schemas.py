"""
Shared request/response models for the scoring pipeline.

The `FeedbackResult` family mirrors the JSON objects Gemini is asked to
return. They are validated with pydantic before any field is trusted; the
`is_fallback` flag marks results that were produced locally because the
model call failed.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


Difficulty = Literal["easy", "medium", "hard"]


class PronunciationRequest(BaseModel):
	"""Union of the audio-based and text-based request shapes."""
	audio_data: Optional[str] = Field(default=None, description="Base64 encoded audio")
	transcript: Optional[str] = None
	target_word: Optional[str] = None
	language: Optional[str] = None
	phonetic_target: Optional[str] = None
	difficulty_level: Difficulty = "medium"
	temperature: float = Field(default=0.5, ge=0.1, le=1.0)


class FeedbackResult(BaseModel):
	feedback: str
	issues: List[str] = Field(default_factory=list)
	tips: List[str] = Field(default_factory=list)
	correct_language: bool
	detected_language: str
	is_fallback: bool = Field(default=False, exclude=True)


class AudioFeedbackResult(FeedbackResult):
	transcript: str = ""
	target_word: str = ""
	# Clamped by the reconciler, not rejected here
	score: float


class ScoringResult(BaseModel):
	score: int = Field(ge=0, le=100)
	feedback: str
	specific_issues: List[str] = Field(default_factory=list)
	pronunciation_tips: List[str] = Field(default_factory=list)
	is_correct: bool
	phonetic_analysis: Optional[str] = None
	language_mismatch: bool = False
	detected_language: str


class Suggestion(BaseModel):
	type: str
	title: str
	description: str


class PronunciationResponse(BaseModel):
	success: bool = True
	validation: ScoringResult
	suggestions: List[Suggestion]
