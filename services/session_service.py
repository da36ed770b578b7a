"""
Persisted active-session records.

Each browser client holds one opaque session key; the record it points at
survives restarts and is restored lazily by core.session_manager. Clients
never see each other's records.
"""

import logging

from sqlalchemy.orm import Session

from core.database import generate_id
from core.time_utils import now_utc
from models.active_session import ActiveSession
from models.hospital import Hospital
from models.user import User

logger = logging.getLogger(__name__)


def new_session_key() -> str:
    return generate_id()


def save_active_session(db: Session, session_key: str, user: User, hospital: Hospital | None = None) -> ActiveSession:
    """Point the client's session key at the account (replacing any previous one)."""
    record = db.get(ActiveSession, session_key)
    if record is None:
        record = ActiveSession(id=session_key)
        db.add(record)

    record.user_id = user.id
    record.hospital_id = hospital.id if hospital else None
    record.started_at = now_utc()

    db.commit()
    return record


def clear_active_session(db: Session, session_key: str | None) -> None:
    """Remove one client's record. Safe to call when none exists."""
    if not session_key:
        return
    db.query(ActiveSession).filter(ActiveSession.id == session_key).delete()
    db.commit()


def clear_user_sessions(db: Session, user_id: str) -> int:
    """Remove every record pointing at an account, on any client."""
    removed = db.query(ActiveSession).filter(ActiveSession.user_id == user_id).delete()
    db.commit()
    return removed


def restore_active_session(db: Session, session_key: str | None):
    """Return (user, hospital) stored under the client's key, or (None, None).

    A session whose account is missing or blocked is discarded.
    """
    if not session_key:
        return None, None

    record = db.get(ActiveSession, session_key)
    if record is None:
        return None, None

    user = db.get(User, record.user_id)
    if user is None or user.is_blocked:
        logger.info("Discarding stored session for unavailable account %s", record.user_id)
        clear_active_session(db, session_key)
        return None, None

    hospital = db.get(Hospital, record.hospital_id) if record.hospital_id else None
    return user, hospital
