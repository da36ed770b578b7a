"""
Decoder for generative-model replies.

Turns the free-form text returned by the model into a normalised Analysis
record. Nothing here touches the network, so every rule can be exercised
with plain strings.
"""

import re
import json
import logging
from dataclasses import dataclass, field, asdict

logger = logging.getLogger(__name__)

TRIAGE_RED = "Red"
TRIAGE_YELLOW = "Yellow"
TRIAGE_GREEN = "Green"
TRIAGE_LEVELS = (TRIAGE_RED, TRIAGE_YELLOW, TRIAGE_GREEN)

YES = "Yes"
NO = "No"

# Per-question defaults when the model answer is missing or unusable
TRIAGE_ANSWER_DEFAULTS = {
    "conscious": YES,
    "breathing": YES,
    "movement": YES,
    "bleeding": NO,
}

ACCIDENT_OTHER = "Other"
ACCIDENT_TYPES = ("Vehicle Collision", "Fall", "Burn", "Pedestrian Hit", ACCIDENT_OTHER)

MIN_INJURED, MAX_INJURED = 1, 20
MIN_CONFIDENCE, MAX_CONFIDENCE = 0, 100

# Filenames that give away a joke or test upload
FAKE_FILENAME_KEYWORDS = ("meme", "fake", "broma", "chiste", "test", "prueba", "joke", "funny")

SOURCE_MODEL = "model"        # JSON object found in the reply
SOURCE_TEXT = "text"          # reply had no JSON, built from raw text
SOURCE_FALLBACK = "fallback"  # transport or parse failure

DEFAULT_DESCRIPTION = "Automatic analysis performed by the AI model"
DEGRADED_DESCRIPTION = "AI analysis failed. Manual assessment required."
DEGRADED_JUSTIFICATION = "Automatic analysis not available"
FILENAME_JUSTIFICATION = "File name suggests a fake alarm"

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
# Leading integer of a string such as "5 people" or "72.9"
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)


@dataclass
class Analysis:
    image_description: str
    triage_level: str
    justification: str
    is_fake_alarm: bool
    triage_answers: dict
    accident_type: str
    injured_count: int
    confidence: int
    detected_objects: list = field(default_factory=list)
    medical_indicators: list = field(default_factory=list)
    source: str = SOURCE_MODEL
    raw: dict | None = None

    @property
    def degraded(self) -> bool:
        """True when the record is a stand-in rather than a model judgement."""
        return self.source == SOURCE_FALLBACK

    def to_dict(self) -> dict:
        data = asdict(self)
        data["degraded"] = self.degraded
        return data


# ---------------------------------------------------------
# Response extraction
# ---------------------------------------------------------
def extract_response_text(response: dict) -> str | None:
    """Return candidates[0].content.parts[0].text, or None if absent."""
    try:
        text = response["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text.strip() else None


def extract_json_object(text: str) -> dict | None:
    """Parse the first {...} span of a reply; None if there is none.

    Raises json.JSONDecodeError when a span exists but is not valid JSON.
    """
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        return None
    parsed = json.loads(match.group(0))
    return parsed if isinstance(parsed, dict) else None


def fallback_from_text(text: str) -> dict:
    """Low-confidence raw record used when the reply carries no JSON."""
    return {
        "imageDescription": text,
        "triageLevel": TRIAGE_YELLOW,
        "justification": DEFAULT_DESCRIPTION,
        "isFakeAlarm": False,
        "triageAnswers": dict(TRIAGE_ANSWER_DEFAULTS),
        "accidentType": ACCIDENT_OTHER,
        "injuredCount": 1,
        "confidence": 50,
        "detectedObjects": [],
        "medicalIndicators": [],
    }


# ---------------------------------------------------------
# Field normalisation
# ---------------------------------------------------------
def normalize_triage_level(level) -> str:
    if isinstance(level, str):
        for valid in TRIAGE_LEVELS:
            if level.strip().lower() == valid.lower():
                return valid
    return TRIAGE_YELLOW


def _is_answer(value, expected: str) -> bool:
    return isinstance(value, str) and value.strip().lower() == expected.lower()


def normalize_triage_answers(answers) -> dict:
    answers = answers if isinstance(answers, dict) else {}
    normalized = {}
    for question, default in TRIAGE_ANSWER_DEFAULTS.items():
        value = answers.get(question)
        # Only the non-default answer has to be stated explicitly
        opposite = NO if default == YES else YES
        normalized[question] = opposite if _is_answer(value, opposite) else default
    return normalized


def normalize_accident_type(accident_type) -> str:
    if isinstance(accident_type, str):
        for valid in ACCIDENT_TYPES:
            if accident_type.strip().lower() == valid.lower():
                return valid
    return ACCIDENT_OTHER


def _leading_int(value) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def _clamp_int(value, low: int, high: int, default: int) -> int:
    number = _leading_int(value)
    if number is None:
        return default
    return max(low, min(high, number))


def normalize_injured_count(count) -> int:
    return _clamp_int(count, MIN_INJURED, MAX_INJURED, MIN_INJURED)


def normalize_confidence(confidence) -> int:
    return _clamp_int(confidence, MIN_CONFIDENCE, MAX_CONFIDENCE, MIN_CONFIDENCE)


def _string_list(value) -> list:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def is_fake_by_filename(filename: str | None) -> bool:
    name = (filename or "").lower()
    return any(keyword in name for keyword in FAKE_FILENAME_KEYWORDS)


def apply_filename_override(analysis: Analysis, filename: str | None) -> Analysis:
    """Joke/test filenames force a Green fake alarm whatever the model said."""
    if is_fake_by_filename(filename):
        analysis.is_fake_alarm = True
        analysis.triage_level = TRIAGE_GREEN
        analysis.justification = FILENAME_JUSTIFICATION
    return analysis


def normalize_analysis(raw: dict, filename: str | None = None, source: str = SOURCE_MODEL) -> Analysis:
    raw = raw if isinstance(raw, dict) else {}
    analysis = Analysis(
        image_description=str(raw.get("imageDescription") or DEFAULT_DESCRIPTION),
        triage_level=normalize_triage_level(raw.get("triageLevel")),
        justification=str(raw.get("justification") or DEFAULT_DESCRIPTION),
        is_fake_alarm=_as_bool(raw.get("isFakeAlarm")),
        triage_answers=normalize_triage_answers(raw.get("triageAnswers")),
        accident_type=normalize_accident_type(raw.get("accidentType")),
        injured_count=normalize_injured_count(raw.get("injuredCount")),
        confidence=normalize_confidence(raw.get("confidence")),
        detected_objects=_string_list(raw.get("detectedObjects")),
        medical_indicators=_string_list(raw.get("medicalIndicators")),
        source=source,
        raw=raw or None,
    )
    return apply_filename_override(analysis, filename)


def degraded_analysis(filename: str | None = None) -> Analysis:
    """Fixed stand-in returned when the model could not be used at all."""
    analysis = Analysis(
        image_description=DEGRADED_DESCRIPTION,
        triage_level=TRIAGE_YELLOW,
        justification=DEGRADED_JUSTIFICATION,
        is_fake_alarm=False,
        triage_answers=dict(TRIAGE_ANSWER_DEFAULTS),
        accident_type=ACCIDENT_OTHER,
        injured_count=1,
        confidence=0,
        source=SOURCE_FALLBACK,
    )
    return apply_filename_override(analysis, filename)


def parse_analysis_response(response: dict, filename: str | None = None) -> Analysis:
    """Full decode path for an emergency-analysis reply.

    Raises ValueError when the reply is empty or carries malformed JSON;
    the adapter turns that into a degraded record.
    """
    text = extract_response_text(response)
    if text is None:
        raise ValueError("Empty response from AI model")

    raw = extract_json_object(text)
    if raw is None:
        logger.info("Model reply had no JSON object; using text fallback")
        return normalize_analysis(fallback_from_text(text), filename, source=SOURCE_TEXT)

    return normalize_analysis(raw, filename, source=SOURCE_MODEL)
