from __future__ import annotations

from pathlib import Path

import pytest

from core import config, database
from core.database import SessionLocal, configure_engine, init_db
from models.ambulance import STATUS_AVAILABLE
from services.fleet_service import create_ambulance
from services.report_service import ReportDraft, submit_report
from services.user_service import register_user
from tests.helpers import make_analysis, operator_profile, user_profile


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))


@pytest.fixture
def db(tmp_path: Path):
    configure_engine(f"sqlite:///{tmp_path / 'emergency.db'}")
    init_db()
    session = SessionLocal()
    yield session
    session.close()
    database.engine.dispose()


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def reporter(db):
    user, _ = register_user(db, user_profile(1))
    return user


@pytest.fixture
def hospital(db):
    _, hospital = register_user(db, operator_profile(1), as_operator=True)
    return hospital


@pytest.fixture
def other_hospital(db):
    _, hospital = register_user(db, operator_profile(2), as_operator=True)
    return hospital


@pytest.fixture
def ambulance(db, hospital):
    return create_ambulance(db, hospital.id, "1234-abc", STATUS_AVAILABLE)


@pytest.fixture
def make_report(db, reporter):
    def _make(analysis=None, **draft_overrides):
        draft = ReportDraft(
            user_id=reporter.id,
            user_phone=reporter.phone,
            user_name=reporter.display_name,
            latitude=-17.79,
            longitude=-63.19,
            description="Crash on the ring road",
        )
        for key, value in draft_overrides.items():
            setattr(draft, key, value)
        return submit_report(db, draft, analysis or make_analysis())

    return _make
