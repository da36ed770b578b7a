import os
import uuid
import logging
from pathlib import Path
from typing import Dict

from sqlalchemy.orm import Session

from core import config
from core.database import get_db_context
from core.errors import FakeAlarmError, ValidationError
from models.user import User
from services import ai_service
from services.report_service import ReportDraft, submit_report
from services.user_service import block_user

logger = logging.getLogger(__name__)

FAKE_ALARM_REASON = "Fake alarm detected by AI analysis"
FAKE_ALARM_MESSAGE = (
    "Our AI system detected that this report is a false alarm or a joke. "
    "Your account has been permanently blocked."
)


def save_uploaded_image(uploaded_file, upload_dir: str | None = None) -> str:
    """
    Save the uploaded emergency photo to disk and return the file path.

    Parameters
    ----------
    uploaded_file : file-like
        The object returned by Streamlit's st.file_uploader (has .name and .getvalue()).
    upload_dir : str, optional
        Target folder; defaults to config.UPLOAD_DIR.
    """
    folder = Path(upload_dir or config.UPLOAD_DIR)
    folder.mkdir(parents=True, exist_ok=True)

    # Keep the extension, never the user-supplied name
    original_name = getattr(uploaded_file, "name", None) or "emergency.jpg"
    ext = os.path.splitext(original_name)[1] or ".jpg"
    dest_path = folder / f"emergency_{uuid.uuid4().hex}{ext}"

    with open(dest_path, "wb") as f:
        f.write(uploaded_file.getvalue())

    return str(dest_path)


def analyze_upload(uploaded_file) -> Dict:
    """
    Run the three model calls for an uploaded photo.

    Returns
    -------
    dict
        {
          "description": str,      # prose for hospital staff
          "analysis": Analysis,    # normalised structured analysis
          "is_fake": bool,         # analysis flag OR second-opinion detector
        }
    """
    image_bytes = uploaded_file.getvalue()
    mime_type = getattr(uploaded_file, "type", None) or None
    filename = getattr(uploaded_file, "name", None)

    description = ai_service.generate_medical_description(image_bytes, mime_type)
    analysis = ai_service.analyze_image(image_bytes, filename, mime_type)
    detector_says_fake = ai_service.detect_fake_alarm(image_bytes, description, mime_type)

    return {
        "description": description,
        "analysis": analysis,
        "is_fake": analysis.is_fake_alarm or detector_says_fake,
    }


def _active_account(db: Session, user: User) -> User:
    account = db.get(User, user.id)
    if account is None or account.is_blocked:
        raise ValidationError("This account is blocked.")
    return account


def _lock_out(db: Session, account: User):
    """Permanent ban; block_user also drops the account's stored sessions."""
    block_user(db, account.id, FAKE_ALARM_REASON)
    raise FakeAlarmError(FAKE_ALARM_MESSAGE)


def analyze_submission_for_user(db: Session, user: User, uploaded_file) -> Dict:
    """
    Analyse a reporter's photo and act on the verdict immediately.

    A fake verdict locks the account right away, whether or not the
    report is ever sent.

    Raises
    ------
    ValidationError
        If the photo is missing or the account is blocked.
    FakeAlarmError
        If the photo is judged to be a fake alarm.
    """
    if uploaded_file is None:
        raise ValidationError("No photo provided.")
    account = _active_account(db, user)

    result = analyze_upload(uploaded_file)
    if result["is_fake"]:
        _lock_out(db, account)
    return result


def analyze_submission(user: User, uploaded_file) -> Dict:
    """Streamlit wrapper around `analyze_submission_for_user`."""
    with get_db_context() as db:
        return analyze_submission_for_user(db, user, uploaded_file)


def process_submission_for_user(
    db: Session,
    user: User,
    location: dict,
    uploaded_file,
    description: str | None = None,
    analysis_result: Dict | None = None,
) -> Dict:
    """
    Full pipeline for an emergency submission.

    Steps:
    1. Analyse the photo (unless a previous analysis result is given).
    2. Fake alarm -> block the account permanently, drop its sessions and
       raise FakeAlarmError. No report is created.
    3. Save the photo and create the Pending report.

    Raises
    ------
    ValidationError
        If the photo or location is missing, or the account is blocked.
    FakeAlarmError
        If the submission is judged to be a fake alarm.
    """
    if uploaded_file is None:
        raise ValidationError("No photo provided.")
    if not location or "latitude" not in location or "longitude" not in location:
        raise ValidationError("Location is required.")

    if analysis_result is None:
        result = analyze_submission_for_user(db, user, uploaded_file)
        account = db.get(User, user.id)
    else:
        account = _active_account(db, user)
        result = analysis_result
        if result["is_fake"]:
            _lock_out(db, account)
    analysis = result["analysis"]

    image_path = save_uploaded_image(uploaded_file)
    draft = ReportDraft(
        user_id=account.id,
        user_phone=account.phone,
        user_name=account.display_name,
        latitude=location["latitude"],
        longitude=location["longitude"],
        description=description if description is not None else result["description"],
        image_path=image_path,
    )
    report = submit_report(db, draft, analysis)

    return {
        "report_id": report.id,
        "triage_level": report.ai_triage_level,
        "accident_type": report.accident_type,
        "injured_count": report.injured_count,
        "confidence": report.ai_confidence,
        "degraded": report.ai_degraded,
        "image_path": image_path,
    }


def process_submission(user: User, location: dict, uploaded_file, description: str | None = None,
                       analysis_result: Dict | None = None) -> Dict:
    """
    Convenience wrapper used by Streamlit pages: opens a DB session
    and calls `process_submission_for_user`.
    """
    with get_db_context() as db:
        return process_submission_for_user(db, user, location, uploaded_file, description, analysis_result)
