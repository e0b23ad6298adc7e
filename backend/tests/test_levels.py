from aibubu.levels import (
	available_levels,
	db_level_to_text_level,
	get_level_mapping,
	is_valid_db_level,
	is_valid_text_level,
	map_cefr_to_player_level,
	text_level_to_db_level,
)


def test_text_and_db_levels_roundtrip_per_system():
	assert text_level_to_db_level("B2", is_cefr=True) == 4
	assert text_level_to_db_level("expert") == 5
	assert db_level_to_text_level(6, is_cefr=True) == "c2"
	assert db_level_to_text_level(3) == "intermediate"


def test_unknown_levels_use_defaults():
	assert text_level_to_db_level("z9", is_cefr=True) == 1
	assert db_level_to_text_level(42, is_cefr=True) == "a1"
	assert db_level_to_text_level(42) == "new"
	assert map_cefr_to_player_level("x1") == "beginner"
	assert get_level_mapping("a1") is None


def test_cefr_to_player_level():
	assert map_cefr_to_player_level(" A1 ") == "new"
	assert map_cefr_to_player_level("c1") == "expert"


def test_available_levels_and_validation():
	assert [m.text_level for m in available_levels(True)] == ["a1", "a2", "b1", "b2", "c1", "c2"]
	assert len(available_levels()) == 6
	assert is_valid_text_level("Proficient")
	assert not is_valid_text_level("proficient", is_cefr=True)
	assert is_valid_db_level(1) and is_valid_db_level(6)
	assert not is_valid_db_level(0) and not is_valid_db_level(7)
