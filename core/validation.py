"""
Input validation for registration forms, plus location acquisition.
"""

import re
import logging

import requests

from core.config import GEOLOCATION_URL

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r"\d{8}", re.ASCII)
# Bolivian CI: 7-8 digits followed by the issuing department code
CI_RE = re.compile(r"\d{7,8}(sc|lp|bn|tj|or|ch|cb|pt|pn)", re.IGNORECASE | re.ASCII)
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MIN_PASSWORD_LENGTH = 6

# Santa Cruz de la Sierra, used whenever the real position is unavailable
FALLBACK_LOCATION = {"latitude": -17.7833, "longitude": -63.1821}


def validate_phone(phone: str) -> bool:
    return bool(phone) and PHONE_RE.fullmatch(phone) is not None


def validate_ci(ci: str) -> bool:
    return bool(ci) and CI_RE.fullmatch(ci) is not None


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def validate_registration(profile: dict, as_operator: bool = False) -> dict:
    """Return {field: message} for every invalid field; empty when valid."""
    errors = {}

    if not validate_phone(profile.get("phone") or ""):
        errors["phone"] = "Phone must have exactly 8 digits."

    if as_operator:
        if not (profile.get("hospital_name") or "").strip():
            errors["hospital_name"] = "Hospital name is required."
        if not validate_phone(profile.get("admin_phone") or ""):
            errors["admin_phone"] = "Administrative phone must have exactly 8 digits."
        if not (profile.get("entity_id") or "").strip():
            errors["entity_id"] = "Entity registration number is required."
    elif not validate_ci(profile.get("ci") or ""):
        errors["ci"] = "CI must be 7-8 digits followed by a department code (e.g. 1234567SC)."

    if not validate_email(profile.get("email") or ""):
        errors["email"] = "Invalid email address."

    if len(profile.get("password") or "") < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must have at least {MIN_PASSWORD_LENGTH} characters."

    return errors


def _ip_location(timeout: float = 5) -> dict:
    response = requests.get(GEOLOCATION_URL, timeout=timeout)
    response.raise_for_status()
    data = response.json()
    return {"latitude": float(data["latitude"]), "longitude": float(data["longitude"])}


def get_current_location(provider=None) -> dict:
    """Return {"latitude", "longitude"}; never raises.

    `provider` is any zero-argument callable returning such a dict (e.g. a
    browser geolocation bridge). Without one, an IP lookup is attempted.
    Any failure resolves to FALLBACK_LOCATION.
    """
    try:
        location = provider() if provider is not None else _ip_location()
        if not location:
            raise ValueError("empty location")
        return {"latitude": float(location["latitude"]), "longitude": float(location["longitude"])}
    except Exception as e:
        logger.warning("Location unavailable (%s); using fallback coordinate", e)
        return dict(FALLBACK_LOCATION)
