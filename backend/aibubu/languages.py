"""
Language profile registry.

Every per-language lookup used by the service (text normalization rule,
pronunciation tips, practice suggestion, Web Speech voice, phonetic guide)
lives on a single `LanguageProfile`. Adding a language means adding one entry
to `PROFILES`.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .schemas import Suggestion


_TONE_MAP: Dict[str, str] = {
	"ā": "a", "á": "a", "ǎ": "a", "à": "a",
	"ē": "e", "é": "e", "ě": "e", "è": "e",
	"ī": "i", "í": "i", "ǐ": "i", "ì": "i",
	"ō": "o", "ó": "o", "ǒ": "o", "ò": "o",
	"ū": "u", "ú": "u", "ǔ": "u", "ù": "u",
}
_TONE_RE = re.compile("[" + "".join(_TONE_MAP) + "]")
_ARABIC_DIACRITICS_RE = re.compile("[\u064b-\u065f]")


def strip_pinyin_tones(text: str) -> str:
	return _TONE_RE.sub(lambda m: _TONE_MAP[m.group(0)], text)


def strip_small_tsu(text: str) -> str:
	# Gemination marker
	return text.replace("っ", "")


def strip_arabic_diacritics(text: str) -> str:
	return _ARABIC_DIACRITICS_RE.sub("", text)


class LanguageProfile(BaseModel):
	model_config = ConfigDict(frozen=True)

	code: str
	name: str
	web_speech_tag: str
	pronunciation_tips: List[str]
	suggestion: Optional[Suggestion] = None
	phonetic_guide: Dict[str, str] = Field(default_factory=dict)
	normalize_rule: Optional[Callable[[str], str]] = None

	def normalize(self, text: str) -> str:
		return self.normalize_rule(text) if self.normalize_rule else text


PROFILES: Dict[str, LanguageProfile] = {
	"en": LanguageProfile(
		code="en",
		name="English",
		web_speech_tag="en-US",
		pronunciation_tips=[
			"Speak clearly and at a moderate pace",
			"Pay attention to vowel sounds",
			"Practice consonant clusters slowly",
		],
		phonetic_guide={"cat": "/kæt/", "dog": "/dɔːɡ/", "sun": "/sʌn/", "hello": "/həˈloʊ/"},
	),
	"es": LanguageProfile(
		code="es",
		name="Spanish",
		web_speech_tag="es-ES",
		pronunciation_tips=[
			"Roll your R sounds gently",
			"Spanish vowels are pure and short",
			"Each syllable gets equal stress unless marked",
		],
		phonetic_guide={"hola": "/ˈo.la/", "me llamo": "/me ˈʎa.mo/", "mucho gusto": "/ˈmu.tʃo ˈɡus.to/"},
	),
	"ja": LanguageProfile(
		code="ja",
		name="Japanese",
		web_speech_tag="ja-JP",
		pronunciation_tips=[
			"Each syllable takes equal time",
			"Consonants are softer than English",
			"Vowels: a-i-u-e-o (ah-ee-oo-eh-oh)",
		],
		suggestion=Suggestion(
			type="rhythm",
			title="Rhythm Practice",
			description="Focus on equal timing for each syllable",
		),
		phonetic_guide={
			"konnichiwa": "/koɴ.ni.tʃi.wa/",
			"arigatou": "/a.ɾi.ɡa.toː/",
			"hajimemashite": "/ha.ʑi.me.ma.ʃi.te/",
		},
		normalize_rule=strip_small_tsu,
	),
	"ru": LanguageProfile(
		code="ru",
		name="Russian",
		web_speech_tag="ru-RU",
		pronunciation_tips=[
			"Pay attention to soft vs hard consonants",
			"Stress affects vowel pronunciation",
			"Practice consonant clusters slowly",
		],
		suggestion=Suggestion(
			type="softness",
			title="Soft/Hard Sounds",
			description="Practice distinguishing between palatalized and non-palatalized consonants",
		),
		phonetic_guide={
			"zdravstvuyte": "/ˈzdra.stvʊj.tʲe/",
			"borsch": "/borʂtʂ/",
			"ochen priyatno": "/ˈo.tʂenʲ pri.ˈjat.nə/",
		},
	),
	"zh": LanguageProfile(
		code="zh",
		name="Chinese (Mandarin)",
		web_speech_tag="zh-CN",
		pronunciation_tips=[
			"Tones are crucial for meaning",
			"Practice each tone separately first",
			"Listen carefully to native speakers",
		],
		suggestion=Suggestion(
			type="tones",
			title="Tone Practice",
			description="Practice each tone separately using the four tone patterns",
		),
		phonetic_guide={
			"mā": "/ma˥/",
			"má": "/ma˧˥/",
			"mǎ": "/ma˧˩˧/",
			"mà": "/ma˥˩/",
			"nǐ hǎo": "/ni˧˩˧ xaʊ˧˩˧/",
		},
		normalize_rule=strip_pinyin_tones,
	),
	"ar": LanguageProfile(
		code="ar",
		name="Arabic",
		web_speech_tag="ar-SA",
		pronunciation_tips=[
			"Emphasis on throat sounds",
			"Practice guttural consonants",
			"Vowels are shorter than English",
		],
		normalize_rule=strip_arabic_diacritics,
	),
	"ko": LanguageProfile(
		code="ko",
		name="Korean",
		web_speech_tag="ko-KR",
		pronunciation_tips=[
			"Distinguish between aspirated and non-aspirated consonants",
			"Practice vowel combinations",
			"Pay attention to final consonants",
		],
	),
}

DEFAULT_LANGUAGE = "en"


def get_profile(code: Optional[str]) -> Optional[LanguageProfile]:
	return PROFILES.get((code or "").strip().lower())


def profile_or_default(code: Optional[str]) -> LanguageProfile:
	return get_profile(code) or PROFILES[DEFAULT_LANGUAGE]


def language_codes_prompt() -> str:
	"""Bullet list of supported codes, embedded in feedback prompts."""
	return "\n".join(f"- {p.code} = {p.name}" for p in PROFILES.values())


def phonetic_guide(text: str, code: Optional[str]) -> str:
	profile = get_profile(code)
	if profile is not None:
		guide = profile.phonetic_guide.get(text.lower())
		if guide:
			return guide
	return f"/{text}/"
