"""
AI Emergency Image Analysis

Uses Google Gemini (generateContent REST endpoint) to describe an uploaded
emergency photo, classify its triage level and flag fake alarms.

Every public function degrades to a safe default instead of raising, so
the report submission flow is never blocked by the model.
"""

import io
import base64
import logging

import requests
from PIL import Image, UnidentifiedImageError

from core import config
from services.analysis_parser import (
    Analysis,
    degraded_analysis,
    extract_response_text,
    parse_analysis_response,
)

logger = logging.getLogger(__name__)

DESCRIPTION_UNAVAILABLE = "Description not available - manual assessment required"

# Substrings in the fake-detection reply that mean "this is not real"
FAKE_REPLY_MARKERS = ("true", "fake", "joke", "falsa", "broma")

GENERATION_CONFIG = {
    "temperature": 0.1,
    "topK": 32,
    "topP": 1,
    "maxOutputTokens": 2048,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

EMERGENCY_ANALYSIS_PROMPT = """You are an expert in medical emergency analysis. Analyse the attached image and answer ONLY with a JSON object with this structure:

{
  "imageDescription": "Detailed description of what you see in the image",
  "triageLevel": "Red|Yellow|Green",
  "justification": "Why you assigned that triage level",
  "isFakeAlarm": true/false,
  "triageAnswers": {
    "conscious": "Yes|No",
    "breathing": "Yes|No",
    "movement": "Yes|No",
    "bleeding": "Yes|No"
  },
  "accidentType": "Vehicle Collision|Fall|Burn|Pedestrian Hit|Other",
  "injuredCount": number,
  "confidence": number_between_0_and_100,
  "detectedObjects": ["object1", "object2"],
  "medicalIndicators": ["indicator1", "indicator2"]
}

Guidelines:
- Red: critical emergency requiring immediate attention
- Yellow: moderate emergency requiring prompt attention
- Green: minor emergency or false alarm
- Fake alarm: a joke, meme, social event, etc.
- Confidence: based on image clarity and visible evidence
"""

FAKE_ALARM_PROMPT = """Analyse this image and decide whether it is a false alarm or a joke. Answer only "true" if it is a false alarm or "false" if it is a real emergency.

False alarm indicators:
- Memes or jokes
- Social events (weddings, birthdays)
- Entertainment content
- Fashion or beauty
- Real estate
- Celebrities
- Tourist spots
- Food
- Drawings or art
- Text indicating a joke
"""

MEDICAL_DESCRIPTION_PROMPT = """As an emergency physician, analyse this image and write a concise, professional medical description that is useful to hospital staff.

Include:
- Type of emergency/accident
- Approximate number of people involved
- Apparent severity of the injuries
- Relevant medical elements visible
- Any additional risk factor

Answer ONLY with the description, no JSON, in at most 2-3 sentences. Be specific and professional.

Example:
"Vehicle accident with 2 people involved. One person visibly unconscious on the ground with possible head trauma. Vehicle with moderate front-end damage."
"""


# ---------------------------------------------------------
# Transport
# ---------------------------------------------------------
def is_configured() -> bool:
    return bool(config.get_api_key())


def detect_mime_type(image_bytes: bytes, default: str = "image/jpeg") -> str:
    """Sniff the image format with Pillow; unknown data keeps the default."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return Image.MIME.get(img.format, default)
    except (UnidentifiedImageError, OSError):
        return default


def build_request_body(prompt: str, image_bytes: bytes | None = None, mime_type: str | None = None) -> dict:
    parts = [{"text": prompt}]
    if image_bytes:
        parts.append({
            "inline_data": {
                "mime_type": mime_type or detect_mime_type(image_bytes),
                "data": base64.b64encode(image_bytes).decode("ascii"),
            }
        })
    return {
        "contents": [{"parts": parts}],
        "generationConfig": dict(GENERATION_CONFIG),
        "safetySettings": list(SAFETY_SETTINGS),
    }


def call_model(prompt: str, image_bytes: bytes | None = None, mime_type: str | None = None) -> dict:
    """POST one generateContent request and return the decoded JSON body.

    Raises RuntimeError when no API key is configured and
    requests.RequestException on transport / HTTP errors.
    """
    api_key = config.get_api_key()
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY or GOOGLE_API_KEY not found in environment")

    endpoint = f"{config.GEMINI_ENDPOINT}/v1beta/models/{config.GEMINI_MODEL}:generateContent"
    logger.debug("Calling %s (image=%s)", endpoint, bool(image_bytes))

    response = requests.post(
        endpoint,
        params={"key": api_key},
        json=build_request_body(prompt, image_bytes, mime_type),
        timeout=config.GEMINI_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


# ---------------------------------------------------------
# Public operations
# ---------------------------------------------------------
def analyze_image(image_bytes: bytes, filename: str | None = None, mime_type: str | None = None) -> Analysis:
    """Structured emergency analysis of a photo. Never raises.

    The result's `source` tells a model judgement ("model"), a text-only
    reply ("text") and the fixed stand-in ("fallback") apart.
    """
    try:
        response = call_model(EMERGENCY_ANALYSIS_PROMPT, image_bytes, mime_type)
        analysis = parse_analysis_response(response, filename)
    except Exception:
        logger.exception("Emergency image analysis failed; returning degraded analysis")
        return degraded_analysis(filename)

    logger.info(
        "Analysis complete: triage=%s fake=%s confidence=%s source=%s",
        analysis.triage_level, analysis.is_fake_alarm, analysis.confidence, analysis.source,
    )
    return analysis


def detect_fake_alarm(image_bytes: bytes, description: str = "", mime_type: str | None = None) -> bool:
    """Second opinion on whether the photo is a joke.

    Fails open: any error counts as "not fake" so a genuine reporter is
    never locked out by an outage.
    """
    prompt = FAKE_ALARM_PROMPT
    if description:
        prompt += f"\nReporter description: {description}\n"

    try:
        response = call_model(prompt, image_bytes, mime_type)
    except Exception as e:
        logger.warning("Fake alarm detection unavailable (%s); treating as genuine", e)
        return False

    text = extract_response_text(response)
    if not text:
        return False

    lowered = text.lower()
    return any(marker in lowered for marker in FAKE_REPLY_MARKERS)


def generate_medical_description(image_bytes: bytes, mime_type: str | None = None) -> str:
    """Two or three sentences of prose for hospital staff."""
    try:
        response = call_model(MEDICAL_DESCRIPTION_PROMPT, image_bytes, mime_type)
        text = extract_response_text(response)
        if not text:
            raise ValueError("Empty description from AI model")
        return text.strip()
    except Exception:
        logger.exception("Medical description generation failed")
        return DESCRIPTION_UNAVAILABLE


def check_connection() -> dict:
    """Send a trivial prompt and report whether the model answered."""
    try:
        response = call_model('Reply only with "OK" if you can read this message.')
    except Exception as e:
        return {"success": False, "message": f"Connection error: {e}"}

    text = extract_response_text(response)
    if not text:
        return {"success": False, "message": "Unexpected response from AI model"}

    return {
        "success": True,
        "message": "Connected to AI model",
        "details": {"model": config.GEMINI_MODEL, "response": text.strip()},
    }


def get_model_info() -> dict:
    return {
        "model": config.GEMINI_MODEL,
        "endpoint": config.GEMINI_ENDPOINT,
        "configured": is_configured(),
        "timeout": config.GEMINI_TIMEOUT,
    }
