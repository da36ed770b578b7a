import io
import json

import pytest
import requests
from PIL import Image

from core import config
from services import ai_service
from services.analysis_parser import FILENAME_JUSTIFICATION, SOURCE_FALLBACK, SOURCE_MODEL, SOURCE_TEXT
from tests.helpers import FakeResponse, model_reply

GENUINE = {
    "imageDescription": "Car overturned on the highway",
    "triageLevel": "Red",
    "justification": "Trapped occupant",
    "isFakeAlarm": False,
    "triageAnswers": {"conscious": "No"},
    "accidentType": "Vehicle Collision",
    "injuredCount": 3,
    "confidence": 88,
}


@pytest.fixture
def calls():
    return []


@pytest.fixture
def reply_with(monkeypatch, calls, api_key):
    """Make every model call return the given response (or raise it)."""

    def _install(response):
        def fake_post(url, **kwargs):
            calls.append({"url": url, **kwargs})
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(ai_service.requests, "post", fake_post)

    return _install


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "red").save(buffer, format="PNG")
    return buffer.getvalue()


def test_detect_mime_type():
    assert ai_service.detect_mime_type(_png_bytes()) == "image/png"
    assert ai_service.detect_mime_type(b"not an image") == "image/jpeg"


def test_request_shape(reply_with, calls):
    reply_with(FakeResponse(model_reply(json.dumps(GENUINE))))

    ai_service.analyze_image(_png_bytes(), "crash.png")

    call = calls[0]
    assert call["url"].endswith(f"/v1beta/models/{config.GEMINI_MODEL}:generateContent")
    assert call["params"] == {"key": "test-key"}
    assert call["timeout"] == config.GEMINI_TIMEOUT

    body = call["json"]
    text_part, image_part = body["contents"][0]["parts"]
    assert "triageLevel" in text_part["text"]
    assert image_part["inline_data"]["mime_type"] == "image/png"
    assert body["generationConfig"]["temperature"] == 0.1
    assert len(body["safetySettings"]) == 4


def test_analyze_image_model_verdict(reply_with):
    reply_with(FakeResponse(model_reply("Analysis:\n" + json.dumps(GENUINE))))

    analysis = ai_service.analyze_image(b"img", "crash.jpg", "image/jpeg")

    assert analysis.source == SOURCE_MODEL
    assert analysis.triage_level == "Red"
    assert analysis.injured_count == 3
    assert analysis.confidence == 88
    assert not analysis.is_fake_alarm


def test_analyze_image_text_reply(reply_with):
    reply_with(FakeResponse(model_reply("A person lying on the sidewalk.")))

    analysis = ai_service.analyze_image(b"img", "street.jpg")
    assert analysis.source == SOURCE_TEXT
    assert analysis.confidence == 50


@pytest.mark.parametrize("response", [
    FakeResponse({"error": {"message": "quota"}}, status_code=429),
    FakeResponse({"promptFeedback": {"blockReason": "SAFETY"}}),
    FakeResponse(model_reply("{broken json}")),
    requests.Timeout("timed out"),
])
def test_analyze_image_degrades(reply_with, response):
    reply_with(response)

    analysis = ai_service.analyze_image(b"img", "crash.jpg")

    assert analysis.source == SOURCE_FALLBACK
    assert analysis.degraded
    assert analysis.triage_level == "Yellow"
    assert analysis.confidence == 0
    assert not analysis.is_fake_alarm


def test_analyze_image_without_key_never_calls_out(monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("network call without API key")

    monkeypatch.setattr(ai_service.requests, "post", unexpected)

    assert not ai_service.is_configured()
    assert ai_service.analyze_image(b"img", "crash.jpg").degraded


def test_joke_filename_overrides_genuine_verdict(reply_with):
    reply_with(FakeResponse(model_reply(json.dumps(GENUINE))))

    analysis = ai_service.analyze_image(b"img", "meme_funny.jpg")

    assert analysis.is_fake_alarm
    assert analysis.triage_level == "Green"
    assert analysis.justification == FILENAME_JUSTIFICATION


def test_joke_filename_flagged_even_when_model_is_down(reply_with):
    reply_with(FakeResponse({}, status_code=500))

    analysis = ai_service.analyze_image(b"img", "meme_funny.jpg")
    assert analysis.degraded
    assert analysis.is_fake_alarm


@pytest.mark.parametrize("text, expected", [
    ("true", True),
    ("True. This is a meme.", True),
    ("Es una broma", True),
    ("false", False),
    ("Real emergency", False),
])
def test_detect_fake_alarm(reply_with, text, expected):
    reply_with(FakeResponse(model_reply(text)))
    assert ai_service.detect_fake_alarm(b"img", "car crash") is expected


def test_detect_fake_alarm_includes_description(reply_with, calls):
    reply_with(FakeResponse(model_reply("false")))
    ai_service.detect_fake_alarm(b"img", "Bus hit a cyclist")
    assert "Bus hit a cyclist" in calls[0]["json"]["contents"][0]["parts"][0]["text"]


def test_detect_fake_alarm_fails_open(reply_with):
    reply_with(requests.ConnectionError("offline"))
    assert ai_service.detect_fake_alarm(b"img") is False


def test_medical_description(reply_with):
    reply_with(FakeResponse(model_reply("  Two injured, one unconscious.  ")))
    assert ai_service.generate_medical_description(b"img") == "Two injured, one unconscious."


def test_medical_description_fallback(reply_with):
    reply_with(FakeResponse({"candidates": []}))
    assert ai_service.generate_medical_description(b"img") == ai_service.DESCRIPTION_UNAVAILABLE


def test_check_connection(reply_with):
    reply_with(FakeResponse(model_reply("OK")))
    result = ai_service.check_connection()
    assert result["success"]
    assert result["details"]["response"] == "OK"


def test_check_connection_failure(reply_with):
    reply_with(FakeResponse({}, status_code=403))
    result = ai_service.check_connection()
    assert not result["success"]
    assert "403" in result["message"]


def test_model_info(api_key):
    info = ai_service.get_model_info()
    assert info["model"] == config.GEMINI_MODEL
    assert info["configured"] is True
    assert "test-key" not in json.dumps(info)
