from __future__ import annotations

import requests

from services.analysis_parser import normalize_analysis


class FakeUpload:
    """Stand-in for the object st.file_uploader returns."""

    def __init__(self, name: str = "crash.jpg", data: bytes = b"\xff\xd8\xff\xe0 not really a jpeg", type: str = "image/jpeg"):
        self.name = name
        self.type = type
        self.size = len(data)
        self._data = data

    def getvalue(self) -> bytes:
        return self._data


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def model_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def user_profile(n: int = 1) -> dict:
    return {
        "email": f"reporter{n}@example.bo",
        "phone": f"7100{n:04d}",
        "ci": f"765432{n}SC",
        "password": "secret1",
    }


def operator_profile(n: int = 1) -> dict:
    return {
        "email": f"ops{n}@hospital.bo",
        "phone": f"6000{n:04d}",
        "password": "secret1",
        "hospital_name": f"Clinic {n}",
        "admin_phone": f"3300{n:04d}",
        "entity_id": f"ENT-{n}",
        "location": {"latitude": -17.78, "longitude": -63.18},
    }


def make_analysis(**overrides):
    raw = {
        "imageDescription": "Two cars collided at an intersection",
        "triageLevel": "Red",
        "justification": "Unconscious driver",
        "isFakeAlarm": False,
        "triageAnswers": {"conscious": "No", "bleeding": "Yes"},
        "accidentType": "Vehicle Collision",
        "injuredCount": 2,
        "confidence": 85,
    }
    raw.update(overrides)
    return normalize_analysis(raw, "crash.jpg")
