from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from .models import Achievement, Player, PlayerAchievement, PlayerProgress, Tutorial

logger = logging.getLogger(__name__)

CATEGORIES = ("maths", "thinking", "reading", "writing", "science")
PERFECT_POINTS = 100


def _category_rules(counts: Dict[str, int]) -> Dict[str, Callable[[], bool]]:
	return {
		"Number Wizard": lambda: counts["maths"] >= 5,
		"Critical Thinker": lambda: counts["thinking"] >= 5,
		"Book Worm": lambda: counts["reading"] >= 5,
		"Story Teller": lambda: counts["writing"] >= 5,
		"Science Explorer": lambda: counts["science"] >= 5,
		"Math Champion": lambda: counts["maths"] >= 10,
		"Logic Master": lambda: counts["thinking"] >= 10,
		"Reading Pro": lambda: counts["reading"] >= 10,
		"Writing Genius": lambda: counts["writing"] >= 10,
		"Science Genius": lambda: counts["science"] >= 10,
		"Mathematics Sage": lambda: counts["maths"] >= 20,
		"Philosophy Master": lambda: counts["thinking"] >= 20,
		"Literature Expert": lambda: counts["reading"] >= 20,
		"Author Extraordinaire": lambda: counts["writing"] >= 20,
		"Scientific Genius": lambda: counts["science"] >= 20,
		"Renaissance Scholar": lambda: all(counts[c] >= 5 for c in CATEGORIES),
	}


def _completed(db: Session, username: str):
	return db.query(PlayerProgress).filter(
		PlayerProgress.username == username,
		PlayerProgress.status == "completed",
	)


def category_completions(db: Session, username: str) -> Dict[str, int]:
	counts = {c: 0 for c in CATEGORIES}
	rows = (
		db.query(Tutorial.tutorial_type)
		.join(PlayerProgress, PlayerProgress.tutorial_id == Tutorial.id)
		.filter(PlayerProgress.username == username, PlayerProgress.status == "completed")
		.all()
	)
	for (tutorial_type,) in rows:
		if tutorial_type in counts:
			counts[tutorial_type] += 1
	return counts


def check_achievements(db: Session, username: str, *, now: Optional[datetime] = None) -> Optional[Achievement]:
	"""Award every newly satisfied achievement and return the first one.

	Returns None when nothing new was earned, the player is unknown or no
	achievements are defined.
	"""
	player = db.get(Player, username)
	if player is None:
		return None

	all_achievements = db.query(Achievement).order_by(Achievement.id).all()
	if not all_achievements:
		logger.warning("No achievements defined; skipping achievement check for %s", username)
		return None

	earned_ids = {
		row.achievement_id
		for row in db.query(PlayerAchievement).filter(PlayerAchievement.username == username).all()
	}
	completed_total = _completed(db, username).count()
	rules = _category_rules(category_completions(db, username))
	now = now or datetime.utcnow()
	start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

	new_achievements: List[Achievement] = []
	for achievement in all_achievements:
		if achievement.id in earned_ids:
			continue

		should_earn = False
		if achievement.points_required and player.total_points >= achievement.points_required:
			should_earn = True
		if achievement.tutorials_required and completed_total >= achievement.tutorials_required:
			should_earn = True

		# Category titles are decided by their own rule alone
		if achievement.title in rules:
			should_earn = rules[achievement.title]()

		if achievement.title == "Quick Learner":
			today_count = _completed(db, username).filter(PlayerProgress.completed_at >= start_of_day).count()
			if today_count >= 3:
				should_earn = True

		if achievement.title == "Perfect Score":
			perfect_count = _completed(db, username).filter(PlayerProgress.points_earned >= PERFECT_POINTS).count()
			if perfect_count >= 5:
				should_earn = True

		if should_earn:
			db.add(PlayerAchievement(username=username, achievement_id=achievement.id, earned_at=now))
			new_achievements.append(achievement)

	if new_achievements:
		db.commit()
		logger.info(
			"%s earned %s", username, ", ".join(a.title for a in new_achievements)
		)
	return new_achievements[0] if new_achievements else None


def achievement_to_dict(achievement: Achievement) -> Dict[str, Any]:
	return {
		"id": achievement.id,
		"title": achievement.title,
		"description": achievement.description,
		"icon": achievement.icon,
		"points_required": achievement.points_required,
		"tutorials_required": achievement.tutorials_required,
		"badge_color": achievement.badge_color,
		"is_secret": achievement.is_secret,
	}


def get_user_achievements(db: Session, username: str) -> List[Dict[str, Any]]:
	rows = (
		db.query(PlayerAchievement, Achievement)
		.join(Achievement, Achievement.id == PlayerAchievement.achievement_id)
		.filter(PlayerAchievement.username == username)
		.order_by(PlayerAchievement.earned_at.desc())
		.all()
	)
	return [
		{**achievement_to_dict(achievement), "earned_at": earned.earned_at.isoformat()}
		for earned, achievement in rows
	]
