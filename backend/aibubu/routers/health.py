from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db
from ..settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
	try:
		db.execute(text("SELECT 1"))
		database = "ok"
	except Exception:
		database = "unavailable"
	return {
		"status": "ok" if database == "ok" else "degraded",
		"database": database,
		"gemini_configured": bool(settings.gemini_api_key),
		"elevenlabs_configured": bool(settings.elevenlabs_api_key),
	}
