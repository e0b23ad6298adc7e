"""
Conversions between text levels and the 1-6 integers stored in the database.

Two leveling systems are supported: CEFR (a1..c2) for languages that use it,
and player levels (new..proficient) for everything else.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class LevelMapping(BaseModel):
	text_level: str
	db_level: int
	display_name: str
	description: str
	color: str


CEFR_LEVEL_MAPPINGS: List[LevelMapping] = [
	LevelMapping(text_level="a1", db_level=1, display_name="A1 - Beginner", description="Can understand and use familiar everyday expressions", color="bg-green-500"),
	LevelMapping(text_level="a2", db_level=2, display_name="A2 - Elementary", description="Can communicate in simple and routine tasks", color="bg-blue-500"),
	LevelMapping(text_level="b1", db_level=3, display_name="B1 - Intermediate", description="Can deal with most situations while travelling", color="bg-yellow-500"),
	LevelMapping(text_level="b2", db_level=4, display_name="B2 - Upper Intermediate", description="Can understand complex texts and interact fluently", color="bg-orange-500"),
	LevelMapping(text_level="c1", db_level=5, display_name="C1 - Advanced", description="Can express ideas fluently and spontaneously", color="bg-red-500"),
	LevelMapping(text_level="c2", db_level=6, display_name="C2 - Proficient", description="Can understand virtually everything with ease", color="bg-purple-500"),
]

PLAYER_LEVEL_MAPPINGS: List[LevelMapping] = [
	LevelMapping(text_level="new", db_level=1, display_name="New", description="Just starting to learn", color="bg-gray-500"),
	LevelMapping(text_level="beginner", db_level=2, display_name="Beginner", description="Basic understanding and simple phrases", color="bg-green-500"),
	LevelMapping(text_level="intermediate", db_level=3, display_name="Intermediate", description="Can handle everyday conversations", color="bg-blue-500"),
	LevelMapping(text_level="advanced", db_level=4, display_name="Advanced", description="Good fluency and complex conversations", color="bg-orange-500"),
	LevelMapping(text_level="expert", db_level=5, display_name="Expert", description="High proficiency and nuanced expression", color="bg-red-500"),
	LevelMapping(text_level="proficient", db_level=6, display_name="Proficient", description="Near-native level mastery", color="bg-purple-500"),
]

CEFR_TO_PLAYER_LEVEL: Dict[str, str] = {
	"a1": "new",
	"a2": "beginner",
	"b1": "intermediate",
	"b2": "advanced",
	"c1": "expert",
	"c2": "proficient",
}


def _mappings(is_cefr: bool) -> List[LevelMapping]:
	return CEFR_LEVEL_MAPPINGS if is_cefr else PLAYER_LEVEL_MAPPINGS


def get_level_mapping(text_level: str, is_cefr: bool = False) -> Optional[LevelMapping]:
	normalized = (text_level or "").lower().strip()
	for m in _mappings(is_cefr):
		if m.text_level == normalized:
			return m
	return None


def get_level_mapping_by_db_level(db_level: int, is_cefr: bool = False) -> Optional[LevelMapping]:
	for m in _mappings(is_cefr):
		if m.db_level == db_level:
			return m
	return None


def text_level_to_db_level(text_level: str, is_cefr: bool = False) -> int:
	mapping = get_level_mapping(text_level, is_cefr)
	return mapping.db_level if mapping else 1


def db_level_to_text_level(db_level: int, is_cefr: bool = False) -> str:
	mapping = get_level_mapping_by_db_level(db_level, is_cefr)
	if mapping:
		return mapping.text_level
	return "a1" if is_cefr else "new"


def map_cefr_to_player_level(cefr_level: str) -> str:
	return CEFR_TO_PLAYER_LEVEL.get((cefr_level or "").lower().strip(), "beginner")


def available_levels(is_cefr: bool = False) -> List[LevelMapping]:
	return list(_mappings(is_cefr))


def is_valid_text_level(text_level: str, is_cefr: bool = False) -> bool:
	return get_level_mapping(text_level, is_cefr) is not None


def is_valid_db_level(db_level: int) -> bool:
	return 1 <= db_level <= 6
