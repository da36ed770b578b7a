import os

import pytest

from core import config
from core.errors import FakeAlarmError, ValidationError
from models.active_session import ActiveSession
from models.emergency_report import EmergencyReport, STATUS_PENDING
from services import ai_service, submission_service
from services.submission_service import (
    FAKE_ALARM_REASON,
    analyze_submission,
    analyze_submission_for_user,
    analyze_upload,
    process_submission,
    process_submission_for_user,
    save_uploaded_image,
)
from services.session_service import restore_active_session, save_active_session
from services.user_service import login_user
from tests.helpers import FakeUpload, make_analysis

LOCATION = {"latitude": -17.79, "longitude": -63.19}


def _uploads():
    if not os.path.isdir(config.UPLOAD_DIR):
        return []
    return os.listdir(config.UPLOAD_DIR)


def test_save_uploaded_image_keeps_extension_only(tmp_path):
    path = save_uploaded_image(FakeUpload("../../etc/evil.png", b"png-bytes"), str(tmp_path / "photos"))

    assert os.path.dirname(path) == str(tmp_path / "photos")
    assert os.path.basename(path).startswith("emergency_")
    assert path.endswith(".png")
    with open(path, "rb") as f:
        assert f.read() == b"png-bytes"


def test_analyze_upload_combines_both_verdicts(monkeypatch):
    monkeypatch.setattr(ai_service, "generate_medical_description", lambda *a, **k: "desc")
    monkeypatch.setattr(ai_service, "analyze_image", lambda *a, **k: make_analysis())
    monkeypatch.setattr(ai_service, "detect_fake_alarm", lambda *a, **k: True)

    result = analyze_upload(FakeUpload())

    assert result["description"] == "desc"
    assert not result["analysis"].is_fake_alarm
    assert result["is_fake"]


def test_genuine_submission_creates_pending_report(db, reporter):
    # No API key configured: the analysis degrades but the report still goes through
    result = process_submission_for_user(db, reporter, LOCATION, FakeUpload("crash.jpg"))

    report = db.get(EmergencyReport, result["report_id"])
    assert report.status == STATUS_PENDING
    assert report.user_id == reporter.id
    assert report.user_phone == reporter.phone
    assert (report.latitude, report.longitude) == (-17.79, -63.19)
    assert report.ai_degraded and result["degraded"]
    assert report.ai_triage_level == "Yellow"
    assert report.description == ai_service.DESCRIPTION_UNAVAILABLE
    assert os.path.exists(report.image_path)
    assert _uploads() == [os.path.basename(report.image_path)]


def test_user_description_wins(db, reporter):
    result = process_submission_for_user(
        db, reporter, LOCATION, FakeUpload(), description="Bus crash, many hurt"
    )
    assert db.get(EmergencyReport, result["report_id"]).description == "Bus crash, many hurt"


def test_precomputed_analysis_is_reused(db, reporter, monkeypatch):
    def must_not_run(*args, **kwargs):
        raise AssertionError("analysis should not run twice")

    monkeypatch.setattr(submission_service, "analyze_upload", must_not_run)
    precomputed = {"description": "desc", "analysis": make_analysis(), "is_fake": False}

    result = process_submission_for_user(db, reporter, LOCATION, FakeUpload(), analysis_result=precomputed)

    assert result["triage_level"] == "Red"
    assert result["injured_count"] == 2
    assert result["confidence"] == 85
    assert not result["degraded"]


def test_fake_filename_blocks_account(db, reporter):
    save_active_session(db, "client-a", reporter)

    with pytest.raises(FakeAlarmError):
        process_submission_for_user(db, reporter, LOCATION, FakeUpload("meme_funny.jpg"))

    assert reporter.is_blocked
    assert reporter.blocked_reason == FAKE_ALARM_REASON
    assert db.query(EmergencyReport).count() == 0
    assert db.query(ActiveSession).count() == 0
    assert _uploads() == []
    assert login_user(db, reporter.email, "secret1") is None


def test_detector_verdict_alone_blocks_account(db, reporter, monkeypatch):
    monkeypatch.setattr(ai_service, "detect_fake_alarm", lambda *a, **k: True)

    with pytest.raises(FakeAlarmError):
        process_submission_for_user(db, reporter, LOCATION, FakeUpload("crash.jpg"))

    assert reporter.is_blocked
    assert db.query(EmergencyReport).count() == 0


def test_blocked_user_cannot_submit(db, reporter):
    with pytest.raises(FakeAlarmError):
        process_submission_for_user(db, reporter, LOCATION, FakeUpload("joke.jpg"))

    with pytest.raises(ValidationError):
        process_submission_for_user(db, reporter, LOCATION, FakeUpload("crash.jpg"))
    assert db.query(EmergencyReport).count() == 0


@pytest.mark.parametrize("location, upload", [
    (None, FakeUpload()),
    ({"latitude": -17.79}, FakeUpload()),
    (LOCATION, None),
])
def test_missing_inputs(db, reporter, location, upload):
    with pytest.raises(ValidationError):
        process_submission_for_user(db, reporter, location, upload)


def test_process_submission_opens_its_own_session(db, reporter):
    result = process_submission(reporter, LOCATION, FakeUpload())

    db.expire_all()
    assert db.get(EmergencyReport, result["report_id"]) is not None


def test_analysing_fake_photo_blocks_account_before_submit(db, reporter):
    save_active_session(db, "client-a", reporter)

    with pytest.raises(FakeAlarmError):
        analyze_submission_for_user(db, reporter, FakeUpload("meme_funny.jpg"))

    assert reporter.is_blocked
    assert reporter.blocked_reason == FAKE_ALARM_REASON
    assert restore_active_session(db, "client-a") == (None, None)
    assert login_user(db, reporter.email, "secret1") is None
    assert db.query(EmergencyReport).count() == 0
    assert _uploads() == []


def test_analysing_genuine_photo_leaves_account_active(db, reporter):
    result = analyze_submission_for_user(db, reporter, FakeUpload("crash.jpg"))

    assert not result["is_fake"]
    assert not reporter.is_blocked
    assert db.query(EmergencyReport).count() == 0


def test_blocked_user_cannot_analyse(db, reporter):
    with pytest.raises(FakeAlarmError):
        analyze_submission_for_user(db, reporter, FakeUpload("joke.jpg"))

    with pytest.raises(ValidationError):
        analyze_submission_for_user(db, reporter, FakeUpload("crash.jpg"))


def test_analyze_submission_opens_its_own_session(db, reporter):
    with pytest.raises(FakeAlarmError):
        analyze_submission(reporter, FakeUpload("meme_funny.jpg"))

    db.expire_all()
    assert reporter.is_blocked


def test_precomputed_fake_verdict_still_blocks_account(db, reporter):
    precomputed = {"description": "desc", "analysis": make_analysis(), "is_fake": True}

    with pytest.raises(FakeAlarmError):
        process_submission_for_user(db, reporter, LOCATION, FakeUpload(), analysis_result=precomputed)

    assert reporter.is_blocked
    assert db.query(EmergencyReport).count() == 0
