from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..achievements import achievement_to_dict, check_achievements, get_user_achievements
from ..db import get_db
from ..models import Player, PlayerProgress, Tutorial
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tutorials"])


class CompleteRequest(BaseModel):
	tutorial_id: Optional[str] = None
	points_earned: int = Field(default=0, ge=0)


@router.get("/tutorial/complete")
def describe_complete():
	return {
		"endpoint": "/tutorial/complete",
		"method": "POST",
		"description": "Complete a tutorial",
		"parameters": {
			"tutorial_id": "string (required) - Tutorial ID",
			"points_earned": "number (optional) - Points earned from tutorial",
		},
		"example": {"tutorial_id": "tutorial_123", "points_earned": 10},
	}


@router.post("/tutorial/complete")
async def complete_tutorial(req: CompleteRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	"""Mark a tutorial completed, credit its points and check achievements."""
	if not req.tutorial_id:
		raise HTTPException(status_code=400, detail="tutorial_id is required")
	tutorial = db.get(Tutorial, req.tutorial_id)
	if tutorial is None:
		raise HTTPException(status_code=404, detail="Tutorial not found")

	now = datetime.utcnow()
	try:
		player = db.get(Player, user.username)
		if player is None:
			player = Player(username=user.username)
			db.add(player)
			db.flush()
		progress = (
			db.query(PlayerProgress)
			.filter(PlayerProgress.username == user.username, PlayerProgress.tutorial_id == tutorial.id)
			.first()
		)
		if progress is None:
			progress = PlayerProgress(username=user.username, tutorial_id=tutorial.id, attempts=0)
			db.add(progress)
		progress.status = "completed"
		progress.points_earned = req.points_earned
		progress.attempts = (progress.attempts or 0) + 1
		progress.completed_at = now
		if req.points_earned > 0:
			player.total_points = (player.total_points or 0) + req.points_earned
		db.commit()
	except Exception as e:
		db.rollback()
		logger.error("Failed to update tutorial progress for %s: %s", user.username, e)
		raise HTTPException(status_code=500, detail="Failed to update tutorial progress")

	logger.info("Tutorial %s completed by %s (+%d points)", tutorial.id, user.username, req.points_earned)
	data = {
		"tutorial_id": tutorial.id,
		"username": user.username,
		"points_earned": req.points_earned,
		"total_points": player.total_points,
		"attempts": progress.attempts,
	}
	# Progress is already saved; an achievement failure must not undo it
	try:
		achievement = check_achievements(db, user.username, now=now)
	except Exception as e:
		db.rollback()
		logger.error("Achievement check failed for %s: %s", user.username, e)
		achievement = None
	return {
		"success": True,
		"message": "Tutorial completed successfully",
		"data": data,
		"achievement": achievement_to_dict(achievement) if achievement else None,
	}


@router.get("/achievements")
async def list_achievements(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	return {"achievements": get_user_achievements(db, user.username)}
