"""
Emergency report lifecycle and ambulance dispatch.

Report states:

    Pending --dispatch--------> Dispatched
    Pending --mark_false_alarm-> False Alarm

Dispatched and False Alarm are terminal. Transitions are conditional
updates (compare-and-swap on status) committed in a single transaction, so
two operators racing on the same report or ambulance cannot both succeed.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from core.database import generate_id
from core.errors import DispatchError, FakeAlarmError
from core.time_utils import now_utc
from models.ambulance import Ambulance, STATUS_AVAILABLE, STATUS_IN_USE
from models.emergency_report import (
    EmergencyReport,
    STATUS_PENDING,
    STATUS_DISPATCHED,
    STATUS_FALSE_ALARM,
)
from services.analysis_parser import Analysis
from services.fleet_service import has_available_ambulance

logger = logging.getLogger(__name__)


@dataclass
class ReportDraft:
    """What the reporter supplies before the AI analysis is attached."""

    user_id: str
    user_phone: str
    user_name: str
    latitude: float
    longitude: float
    description: str | None = None
    image_path: str | None = None


# ------------------------------------------
# Creation
# ------------------------------------------
def submit_report(db: Session, draft: ReportDraft, analysis: Analysis) -> EmergencyReport:
    """Append a new Pending report built from the draft and its analysis.

    Fake-flagged analyses are refused; the caller is responsible for the
    account lockout that follows.
    """
    if analysis.is_fake_alarm:
        raise FakeAlarmError("Report was flagged as a fake alarm and cannot be submitted.")

    report = EmergencyReport(
        id=generate_id(),
        user_id=draft.user_id,
        user_phone=draft.user_phone,
        user_name=draft.user_name,
        timestamp=now_utc(),
        latitude=float(draft.latitude),
        longitude=float(draft.longitude),
        description=draft.description,
        accident_type=analysis.accident_type,
        injured_count=analysis.injured_count,
        triage_answers=dict(analysis.triage_answers),
        image_path=draft.image_path,
        ai_image_description=analysis.image_description,
        ai_triage_level=analysis.triage_level,
        ai_justification=analysis.justification,
        ai_is_fake_alarm=analysis.is_fake_alarm,
        ai_confidence=analysis.confidence,
        ai_degraded=analysis.degraded,
        status=STATUS_PENDING,
        assigned_ambulance_id=None,
        dispatch_time=None,
        hospital_id=None,
    )
    db.add(report)
    db.commit()
    db.refresh(report)

    logger.info("Report %s submitted (triage=%s)", report.id, report.ai_triage_level)
    return report


# ------------------------------------------
# Queries
# ------------------------------------------
def get_report(db: Session, report_id: str):
    return db.get(EmergencyReport, report_id)


def list_reports(db: Session):
    """All reports, newest first."""
    return db.query(EmergencyReport).order_by(EmergencyReport.timestamp.desc()).all()


def list_user_reports(db: Session, user_id: str):
    return (
        db.query(EmergencyReport)
        .filter(EmergencyReport.user_id == user_id)
        .order_by(EmergencyReport.timestamp.desc())
        .all()
    )


def visible_pending(db: Session, hospital_id: str):
    """Pending reports a hospital's queue should show, newest first.

    Untagged reports are only offered while the hospital has at least one
    available ambulance; reports already tagged with the hospital are always
    shown. Triage level does not affect the order.
    """
    query = db.query(EmergencyReport).filter(EmergencyReport.status == STATUS_PENDING)

    if not has_available_ambulance(db, hospital_id):
        query = query.filter(EmergencyReport.hospital_id == hospital_id)

    return query.order_by(EmergencyReport.timestamp.desc()).all()


# ------------------------------------------
# Transitions
# ------------------------------------------
def dispatch(db: Session, report_id: str, ambulance_id: str) -> EmergencyReport:
    """Assign an available ambulance to a pending report.

    Report -> Dispatched (ambulance, dispatch time, hospital recorded) and
    ambulance -> in-use are committed together or not at all.
    Raises DispatchError if either record is missing or not in the
    required state.
    """
    ambulance = db.get(Ambulance, ambulance_id)
    if ambulance is None:
        raise DispatchError(f"Ambulance {ambulance_id} not found.")
    if db.get(EmergencyReport, report_id) is None:
        raise DispatchError(f"Report {report_id} not found.")

    hospital_id = ambulance.hospital_id
    dispatched_at = now_utc()

    try:
        claimed = (
            db.query(Ambulance)
            .filter(Ambulance.id == ambulance_id, Ambulance.status == STATUS_AVAILABLE)
            .update({Ambulance.status: STATUS_IN_USE}, synchronize_session=False)
        )
        if claimed != 1:
            raise DispatchError(f"Ambulance {ambulance_id} is not available.")

        updated = (
            db.query(EmergencyReport)
            .filter(EmergencyReport.id == report_id, EmergencyReport.status == STATUS_PENDING)
            .update(
                {
                    EmergencyReport.status: STATUS_DISPATCHED,
                    EmergencyReport.assigned_ambulance_id: ambulance_id,
                    EmergencyReport.dispatch_time: dispatched_at,
                    EmergencyReport.hospital_id: hospital_id,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            raise DispatchError(f"Report {report_id} is no longer pending.")

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        # Identity map still holds the pre-update rows
        db.expire_all()

    logger.info("Report %s dispatched with ambulance %s (hospital %s)", report_id, ambulance_id, hospital_id)
    return db.get(EmergencyReport, report_id)


def mark_false_alarm(db: Session, report_id: str) -> EmergencyReport:
    """Close a pending report as a false alarm. No ambulance is touched."""
    if db.get(EmergencyReport, report_id) is None:
        raise DispatchError(f"Report {report_id} not found.")

    try:
        updated = (
            db.query(EmergencyReport)
            .filter(EmergencyReport.id == report_id, EmergencyReport.status == STATUS_PENDING)
            .update({EmergencyReport.status: STATUS_FALSE_ALARM}, synchronize_session=False)
        )
        if updated != 1:
            raise DispatchError(f"Report {report_id} is no longer pending.")
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.expire_all()

    logger.info("Report %s marked as false alarm", report_id)
    return db.get(EmergencyReport, report_id)
