from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Literal, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..feedback import extract_json_block
from ..gemini_client import GeminiClient
from ..languages import phonetic_guide, profile_or_default
from ..settings import settings
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["speech"])

SPEED_RATES: Dict[str, float] = {"slow": 0.7, "normal": 0.9, "fast": 1.1}
STYLE_PITCHES: Dict[str, float] = {"child": 1.4, "friendly": 1.2, "teacher": 1.1, "narrator": 1.0}
DEFAULT_PITCH = 1.3

FALLBACK_VOICES: List[Dict[str, Any]] = [
	{"voice_id": "JBFqnCBsd6RMkjVDRZzb", "name": "Default Female Voice", "labels": {"gender": "female", "age": "young adult"}},
	{"voice_id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel", "labels": {"gender": "female", "age": "young adult"}},
	{"voice_id": "CYw3kZ02Hs0563khs1Fj", "name": "Ian", "labels": {"gender": "male", "age": "middle aged"}},
]


class SpeechRequest(BaseModel):
	text: Optional[str] = None
	language: Optional[str] = None
	voice_style: Literal["child", "friendly", "teacher", "narrator"] = "child"
	speed: Literal["slow", "normal", "fast"] = "normal"
	emotion: Literal["neutral", "excited", "calm", "encouraging"] = "encouraging"


class VoiceSettings(BaseModel):
	stability: float = 0.5
	similarity_boost: float = 0.8
	style: float = 0.2
	use_speaker_boost: bool = False


class ElevenLabsRequest(BaseModel):
	text: Optional[str] = None
	voice_id: Optional[str] = None
	model_id: Optional[str] = None
	voice_settings: VoiceSettings = Field(default_factory=VoiceSettings)
	output_format: str = "mp3_44100_128"


def speed_rate(speed: str) -> float:
	return SPEED_RATES.get(speed, 0.9)


def style_pitch(voice_style: str) -> float:
	return STYLE_PITCHES.get(voice_style, DEFAULT_PITCH)


def fallback_synthesis_config(text: str, language: str, voice_style: str, speed: str) -> Dict[str, Any]:
	is_child = voice_style == "child"
	return {
		"ssml_text": f'<speak><prosody rate="{speed_rate(speed)}" pitch="{style_pitch(voice_style)}">{text}</prosody></speak>',
		"phonetic_guide": phonetic_guide(text, language),
		"prosody": {
			"base_pitch": "high" if is_child else "medium",
			"speaking_rate": speed_rate(speed),
			"volume": 0.8,
		},
		"voice_characteristics": {
			"gender": "female" if is_child else "neutral",
			"age": "young" if is_child else "adult",
			"accent": "native",
		},
		"emphasis_points": [],
		"pauses": [],
	}


def _synthesis_prompt(req: SpeechRequest) -> str:
	return f"""
You are an advanced speech synthesis system. Generate detailed speech synthesis instructions for text-to-speech conversion.

TEXT TO SPEAK: "{req.text}"
TARGET LANGUAGE: {req.language}
VOICE STYLE: {req.voice_style}
SPEED: {req.speed}
EMOTION: {req.emotion}

Include SSML enhanced text, a phonetic breakdown for difficult words, prosody instructions, child-friendly adaptations if the voice style is 'child', and language-specific optimizations for {req.language}.

Return the response in this JSON format:
{{
  "ssml_text": "SSML enhanced version of the text",
  "phonetic_guide": "phonetic breakdown of difficult words",
  "prosody": {{"base_pitch": "high|medium|low", "speaking_rate": "0.5-2.0", "volume": "0.1-1.0"}},
  "voice_characteristics": {{"gender": "...", "age": "...", "accent": "..."}},
  "emphasis_points": ["words to emphasize"],
  "pauses": ["locations of natural pauses"]
}}
""".strip()


@router.post("/speak")
async def speak(req: SpeechRequest, user: User = Depends(get_current_user)):
	"""Speech synthesis configuration plus a Web Speech API fallback block."""
	if not req.text or not req.language:
		raise HTTPException(status_code=400, detail="Missing required fields: text and language")

	profile = profile_or_default(req.language)
	config: Optional[Dict[str, Any]] = None
	client: Optional[GeminiClient] = None
	try:
		client = GeminiClient()
		raw = await client.generate(_synthesis_prompt(req), temperature=0.3)
		config = extract_json_block(raw)
	except Exception as e:
		logger.warning("Speech synthesis config unavailable, using fallback: %s", e)
	finally:
		if client is not None:
			await client.aclose()
	if not isinstance(config, dict):
		config = fallback_synthesis_config(req.text, req.language, req.voice_style, req.speed)

	return {
		"success": True,
		"method": "llm_enhanced",
		"synthesis_config": config,
		"phonetic_guide": phonetic_guide(req.text, req.language),
		"pronunciation_tips": profile.pronunciation_tips,
		"web_speech_fallback": {
			"text": req.text,
			"language": profile.web_speech_tag,
			"voice": profile.web_speech_tag,
			"rate": speed_rate(req.speed),
			"pitch": style_pitch(req.voice_style),
		},
	}


@router.post("/elevenlabs-speech")
async def elevenlabs_speech(req: ElevenLabsRequest, user: User = Depends(get_current_user)):
	if not req.text:
		raise HTTPException(status_code=400, detail="Missing required field: text")
	if not settings.elevenlabs_api_key:
		raise HTTPException(status_code=500, detail="ElevenLabs API key not configured")

	voice_id = req.voice_id or settings.elevenlabs_default_voice
	model_id = req.model_id or settings.elevenlabs_model
	url = f"{settings.elevenlabs_base_url}/v1/text-to-speech/{voice_id}"
	payload = {"text": req.text, "model_id": model_id, "voice_settings": req.voice_settings.model_dump()}
	try:
		async with httpx.AsyncClient(timeout=60) as client:
			r = await client.post(
				url,
				params={"output_format": req.output_format},
				headers={"xi-api-key": settings.elevenlabs_api_key, "Content-Type": "application/json"},
				json=payload,
			)
	except httpx.RequestError as e:
		logger.error("ElevenLabs request failed: %s", e)
		raise HTTPException(status_code=502, detail="Failed to reach ElevenLabs")
	if r.status_code >= 400:
		logger.error("ElevenLabs API error %s: %s", r.status_code, r.text)
		raise HTTPException(status_code=r.status_code, detail="Failed to generate speech with ElevenLabs")

	return {
		"success": True,
		"method": "elevenlabs",
		"audio_data": base64.b64encode(r.content).decode("ascii"),
		"content_type": f"audio/{req.output_format.split('_')[0]}",
		"voice_info": {"voice_id": voice_id, "model_id": model_id, "voice_settings": req.voice_settings.model_dump()},
		"text_length": len(req.text),
		# ~150 words per minute, 5 characters per word
		"estimated_duration_ms": round((len(req.text) / 5) * (60000 / 150)),
	}


def child_friendly(voices: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
	out = []
	for voice in voices:
		labels = voice.get("labels") or {}
		name = str(voice.get("name", "")).lower()
		if labels.get("gender") == "female" or labels.get("age") == "young" or "child" in name or "kid" in name:
			out.append(voice)
	return out


@router.get("/elevenlabs-speech/voices")
async def list_voices(user: User = Depends(get_current_user)):
	if settings.elevenlabs_api_key:
		try:
			async with httpx.AsyncClient(timeout=30) as client:
				r = await client.get(
					f"{settings.elevenlabs_base_url}/v2/voices",
					headers={"xi-api-key": settings.elevenlabs_api_key},
				)
				r.raise_for_status()
			voices = r.json().get("voices") or []
			friendly = child_friendly(voices)
			return {
				"success": True,
				"source": "elevenlabs_api",
				"all_voices": voices,
				"child_friendly_voices": friendly,
				"recommended_voice": (friendly or voices or FALLBACK_VOICES)[0],
			}
		except (httpx.HTTPError, ValueError) as e:
			logger.info("ElevenLabs voice listing failed, using built-in voices: %s", e)

	return {
		"success": True,
		"source": "hardcoded_fallback",
		"all_voices": FALLBACK_VOICES,
		"child_friendly_voices": child_friendly(FALLBACK_VOICES),
		"recommended_voice": FALLBACK_VOICES[0],
		"note": "Using hardcoded fallback voices",
	}
