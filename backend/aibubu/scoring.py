"""
Deterministic half of the pronunciation pipeline.

- `normalize` / `similarity`: local text comparison used on the transcript path
- `bands_for`: per-difficulty scoring bands embedded in the audio prompt
- `reconcile`: merges a raw score with model feedback into a `ScoringResult`
- `suggestions`: follow-up guidance derived from the final score

Randomized rules take an `rng` argument (anything with `randrange`/`randint`,
normally `random.Random`) so callers can pin the outcome.
"""

from __future__ import annotations

import math
import random
import re
from typing import List, Optional

from .languages import get_profile
from .schemas import FeedbackResult, ScoringResult, Suggestion


UNCLEAR_MARKER = "[unclear audio]"
CORRECT_THRESHOLD = 80
MISMATCH_SCORE_CAP = 20

_NON_WORD_RE = re.compile(r"[^\w\s]")
_SPACES_RE = re.compile(r"\s+")

_default_rng = random.Random()


# ============================================================================
# TEXT COMPARISON
# ============================================================================

def normalize(text: Optional[str], language: Optional[str]) -> str:
	normalized = (text or "").lower().strip()
	profile = get_profile(language)
	if profile is not None:
		normalized = profile.normalize(normalized)
	normalized = _NON_WORD_RE.sub("", normalized)
	return _SPACES_RE.sub(" ", normalized)


def levenshtein(a: str, b: str) -> int:
	# matrix[j][i]: distance between b[:j] and a[:i]
	matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
	for i in range(len(a) + 1):
		matrix[0][i] = i
	for j in range(len(b) + 1):
		matrix[j][0] = j
	for j in range(1, len(b) + 1):
		for i in range(1, len(a) + 1):
			indicator = 0 if a[i - 1] == b[j - 1] else 1
			matrix[j][i] = min(
				matrix[j][i - 1] + 1,
				matrix[j - 1][i] + 1,
				matrix[j - 1][i - 1] + indicator,
			)
	return matrix[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
	max_len = max(len(a), len(b))
	if max_len == 0:
		return 1.0
	return (max_len - levenshtein(a, b)) / max_len


# ============================================================================
# SCORING POLICY
# ============================================================================

def bands_for(difficulty: str, target: str) -> str:
	"""Scoring bands the model is asked to follow for a difficulty level.

	Unknown difficulties use the medium bands.
	"""
	if difficulty == "easy":
		return f"""
- 85-100: Any recognizable attempt at "{target}" (be very encouraging!)
- 70-84: Close pronunciation with minor issues
- 50-69: Understandable as "{target}" with some errors
- 30-49: Attempting "{target}" but needs improvement
- 15-29: Barely recognizable as "{target}"
- 0-14: Not "{target}" or wrong language

NOTE: Be generous with scoring for beginners. Focus on encouragement."""
	if difficulty == "hard":
		return f"""
- 95-100: Native-level pronunciation of "{target}"
- 85-94: Excellent pronunciation with tiny imperfections
- 70-84: Good pronunciation but noticeable accent/errors
- 50-69: Understandable but clear pronunciation issues
- 30-49: Attempting "{target}" but many errors
- 0-29: Poor pronunciation or wrong word

NOTE: Be strict and precise in evaluation. Expect near-native quality."""
	return f"""
- 90-100: Perfect pronunciation of "{target}"
- 80-89: Very good, minor issues with "{target}"
- 60-79: Recognizable as "{target}" but needs work
- 40-59: Attempting "{target}" but significant errors
- 20-39: Barely recognizable as "{target}"
- 0-19: Not "{target}" or wrong language"""


# ============================================================================
# RECONCILIATION
# ============================================================================

def is_unclear(transcript: Optional[str]) -> bool:
	text = (transcript or "").strip()
	return not text or text.lower() == UNCLEAR_MARKER


def unclear_score(rng=None) -> int:
	"""Low score in [10, 40) for empty or unclear transcripts."""
	rng = rng or _default_rng
	return rng.randrange(10, 40)


def preliminary_score(sim: float, rng=None) -> int:
	"""Convert a similarity to 0-100, pulling near-perfect matches down.

	Similarities above 0.8 lose 1-20 points, never dropping below 60.
	"""
	rng = rng or _default_rng
	score = int(math.floor(sim * 100 + 0.5))
	if sim > 0.8:
		score = max(60, score - rng.randint(1, 20))
	return score


def reconcile(
	raw_score: float,
	feedback: FeedbackResult,
	*,
	phonetic_target: Optional[str] = None,
) -> ScoringResult:
	score = int(math.floor(max(0.0, min(100.0, float(raw_score))) + 0.5))
	language_match = feedback.correct_language
	if not language_match:
		score = min(score, MISMATCH_SCORE_CAP)
	return ScoringResult(
		score=score,
		feedback=feedback.feedback,
		specific_issues=list(feedback.issues),
		pronunciation_tips=list(feedback.tips),
		is_correct=language_match and score >= CORRECT_THRESHOLD,
		phonetic_analysis=phonetic_target,
		language_mismatch=not language_match,
		detected_language=feedback.detected_language,
	)


# ============================================================================
# SUGGESTIONS
# ============================================================================

def suggestions(result: ScoringResult, language: Optional[str]) -> List[Suggestion]:
	items: List[Suggestion] = []
	if result.score < 60:
		items.append(Suggestion(
			type="practice",
			title="Focus on Basics",
			description="Practice the individual sounds slowly before attempting the full word",
		))
	elif result.score < CORRECT_THRESHOLD:
		items.append(Suggestion(
			type="refinement",
			title="Fine-tuning",
			description="You're close! Pay attention to stress patterns and intonation",
		))
	else:
		items.append(Suggestion(
			type="mastery",
			title="Excellent!",
			description="Try more challenging words or practice speaking faster",
		))
	profile = get_profile(language)
	if profile is not None and profile.suggestion is not None:
		items.append(profile.suggestion)
	return items
