import json
import os
import tempfile

import pytest

# Configure an isolated database and disable external services before the
# package reads its settings.
_tmp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp_db.close()
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_db.name}"
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["ELEVENLABS_API_KEY"] = ""

from fastapi.testclient import TestClient  # noqa: E402

from aibubu.db import Base, SessionLocal, engine  # noqa: E402
from aibubu.main import app  # noqa: E402
from aibubu.routers.auth import User, get_current_user  # noqa: E402


class FakeGemini:
	"""Stands in for GeminiClient; replays canned replies or raises."""

	def __init__(self, reply=None, error=None, multimodal_reply=None):
		self.reply = reply
		self.error = error
		self.multimodal_reply = multimodal_reply if multimodal_reply is not None else reply
		self.calls = []
		self.closed = False

	@staticmethod
	def _text(reply):
		return reply if isinstance(reply, str) else json.dumps(reply)

	async def generate(self, prompt, *, temperature=None, response_schema=None, allow_fallback=True):
		self.calls.append({"prompt": prompt, "temperature": temperature, "response_schema": response_schema})
		if self.error is not None:
			raise self.error
		return self._text(self.reply)

	async def generate_multimodal(self, parts, *, role="user", temperature=None, response_schema=None, allow_fallback=False):
		self.calls.append({"parts": parts, "temperature": temperature, "response_schema": response_schema})
		if self.error is not None:
			raise self.error
		return self._text(self.multimodal_reply)

	async def aclose(self):
		self.closed = True


class StubRng:
	def __init__(self, randint_value=10, randrange_value=20):
		self.randint_value = randint_value
		self.randrange_value = randrange_value

	def randint(self, a, b):
		assert a <= self.randint_value <= b
		return self.randint_value

	def randrange(self, start, stop):
		assert start <= self.randrange_value < stop
		return self.randrange_value


def use_fake_gemini(monkeypatch, module, fake):
	monkeypatch.setattr(module, "GeminiClient", lambda *args, **kwargs: fake)


def no_gemini(monkeypatch, module):
	def _raise(*args, **kwargs):
		raise ValueError("GEMINI_API_KEY is not configured")
	monkeypatch.setattr(module, "GeminiClient", _raise)


@pytest.fixture(autouse=True)
def _schema():
	Base.metadata.create_all(bind=engine)
	yield
	Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
	session = SessionLocal()
	try:
		yield session
	finally:
		session.close()


@pytest.fixture()
def client():
	return TestClient(app)


@pytest.fixture()
def auth_client():
	app.dependency_overrides[get_current_user] = lambda: User(username="tester")
	yield TestClient(app)
	app.dependency_overrides = {}


def pytest_sessionfinish(session, exitstatus):
	engine.dispose()
	try:
		os.unlink(_tmp_db.name)
	except OSError:
		pass
