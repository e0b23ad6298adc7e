import logging

from fastapi import FastAPI

from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import health, auth
from .routers import pronunciation
from .routers import answers
from .routers import tutorial
from .routers import assessment
from .routers import speech

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="AiBubu API")
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(pronunciation.router)
app.include_router(answers.router)
app.include_router(tutorial.router)
app.include_router(assessment.router)
app.include_router(speech.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	try:
		ensure_schema()
	except Exception as e:
		logger.warning("Schema migration skipped: %s", e)
	if not settings.gemini_api_key:
		logger.warning("GEMINI_API_KEY is not set; scoring will use fallback feedback")
