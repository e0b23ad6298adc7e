import base64

import httpx

from aibubu.routers import speech
from aibubu.settings import settings
from conftest import FakeGemini, no_gemini, use_fake_gemini


def _mock_httpx(monkeypatch, handler):
	real_client = httpx.AsyncClient

	def factory(*args, **kwargs):
		kwargs["transport"] = httpx.MockTransport(handler)
		return real_client(*args, **kwargs)

	monkeypatch.setattr(speech.httpx, "AsyncClient", factory)


def test_speak_requires_text_and_language(auth_client):
	assert auth_client.post("/speak", json={"text": "hola"}).status_code == 400


def test_speak_falls_back_without_model(auth_client, monkeypatch):
	no_gemini(monkeypatch, speech)
	r = auth_client.post("/speak", json={"text": "hola", "language": "es", "speed": "slow"})
	assert r.status_code == 200
	body = r.json()
	assert body["phonetic_guide"] == "/ˈo.la/"
	assert body["pronunciation_tips"][0] == "Roll your R sounds gently"
	assert body["web_speech_fallback"] == {"text": "hola", "language": "es-ES", "voice": "es-ES", "rate": 0.7, "pitch": 1.4}
	config = body["synthesis_config"]
	assert config["prosody"]["base_pitch"] == "high"
	assert 'rate="0.7"' in config["ssml_text"]


def test_speak_uses_model_config(auth_client, monkeypatch):
	fake = FakeGemini(reply={"ssml_text": "<speak>hi</speak>", "prosody": {"base_pitch": "low"}})
	use_fake_gemini(monkeypatch, speech, fake)
	r = auth_client.post("/speak", json={"text": "hi", "language": "xx", "voice_style": "narrator", "speed": "fast"})
	body = r.json()
	assert body["synthesis_config"]["ssml_text"] == "<speak>hi</speak>"
	assert body["web_speech_fallback"]["language"] == "en-US"
	assert body["web_speech_fallback"]["rate"] == 1.1
	assert body["web_speech_fallback"]["pitch"] == 1.0
	assert fake.closed is True


def test_elevenlabs_requires_key(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", None)
	r = auth_client.post("/elevenlabs-speech", json={"text": "hello"})
	assert r.status_code == 500


def test_elevenlabs_returns_base64_audio(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", "test-key")
	seen = {}

	def handler(request):
		seen["url"] = str(request.url)
		seen["key"] = request.headers["xi-api-key"]
		return httpx.Response(200, content=b"ID3-audio")

	_mock_httpx(monkeypatch, handler)
	r = auth_client.post("/elevenlabs-speech", json={"text": "hello world"})
	assert r.status_code == 200
	body = r.json()
	assert base64.b64decode(body["audio_data"]) == b"ID3-audio"
	assert body["content_type"] == "audio/mp3"
	assert body["estimated_duration_ms"] == 880
	assert body["voice_info"]["voice_id"] == settings.elevenlabs_default_voice
	assert "/v1/text-to-speech/" in seen["url"]
	assert "output_format=mp3_44100_128" in seen["url"]
	assert seen["key"] == "test-key"


def test_elevenlabs_propagates_upstream_status(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", "test-key")
	_mock_httpx(monkeypatch, lambda request: httpx.Response(401, json={"detail": "bad key"}))
	r = auth_client.post("/elevenlabs-speech", json={"text": "hello"})
	assert r.status_code == 401


def test_voices_fallback_without_key(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", None)
	body = auth_client.get("/elevenlabs-speech/voices").json()
	assert body["source"] == "hardcoded_fallback"
	assert body["recommended_voice"]["voice_id"] == "JBFqnCBsd6RMkjVDRZzb"
	assert [v["name"] for v in body["child_friendly_voices"]] == ["Default Female Voice", "Rachel"]


def test_voices_from_api(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", "test-key")
	voices = [
		{"voice_id": "a", "name": "Deep Narrator", "labels": {"gender": "male", "age": "old"}},
		{"voice_id": "b", "name": "Kid Sam", "labels": {"gender": "male", "age": "young"}},
	]
	_mock_httpx(monkeypatch, lambda request: httpx.Response(200, json={"voices": voices}))
	body = auth_client.get("/elevenlabs-speech/voices").json()
	assert body["source"] == "elevenlabs_api"
	assert body["recommended_voice"]["voice_id"] == "b"


def test_voices_api_failure_falls_back(auth_client, monkeypatch):
	monkeypatch.setattr(settings, "elevenlabs_api_key", "test-key")
	_mock_httpx(monkeypatch, lambda request: httpx.Response(503))
	body = auth_client.get("/elevenlabs-speech/voices").json()
	assert body["source"] == "hardcoded_fallback"
