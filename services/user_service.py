import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.auth import hash_password, verify_password
from core.database import get_db_context, generate_id
from core.validation import FALLBACK_LOCATION
from models.hospital import Hospital, HOSPITAL_TYPE_PRIVATE
from models.user import User, ROLE_USER, ROLE_OPERATOR
from services.session_service import save_active_session, clear_active_session, clear_user_sessions

logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == (email or "").strip()).first()


def get_hospital_for_operator(db: Session, operator_id: str):
    return db.query(Hospital).filter(Hospital.operator_id == operator_id).first()


def register_user(db: Session, profile: dict, as_operator: bool = False, session_key: str | None = None):
    """Create an account (and its hospital for operators) and make it the client's active session.

    profile keys: email, phone, password, ci (users); hospital_name,
    location {"latitude", "longitude"}, admin_phone, entity_id (operators).

    Returns (user, hospital) where hospital is None for reporting users,
    or None when the email or phone is already registered.
    The session record is only written when a client session_key is given.
    """
    email = (profile.get("email") or "").strip()
    phone = (profile.get("phone") or "").strip()

    exists = db.query(User).filter(or_(User.email == email, User.phone == phone)).first()
    if exists:
        logger.info("Registration rejected: email or phone already in use")
        return None

    user = User(
        id=generate_id(),
        email=email,
        phone=phone,
        ci=None if as_operator else (profile.get("ci") or "").strip().upper() or None,
        role=ROLE_OPERATOR if as_operator else ROLE_USER,
        password_hash=hash_password(profile.get("password") or ""),
        is_blocked=False,
    )
    db.add(user)

    hospital = None
    if as_operator:
        location = profile.get("location") or FALLBACK_LOCATION
        hospital = Hospital(
            id=generate_id(),
            name=(profile.get("hospital_name") or "").strip(),
            latitude=float(location["latitude"]),
            longitude=float(location["longitude"]),
            type=HOSPITAL_TYPE_PRIVATE,
            admin_phone=(profile.get("admin_phone") or "").strip(),
            entity_id=(profile.get("entity_id") or "").strip(),
            email=email,
            operator_id=user.id,
        )
        db.add(hospital)

    db.commit()
    if session_key:
        save_active_session(db, session_key, user, hospital)

    logger.info("Registered %s account %s", user.role, user.id)
    return user, hospital


def login_user(db: Session, email: str, password: str, session_key: str | None = None):
    """Authenticate by email + password and make the account the client's active session.

    Returns (user, hospital) or None for unknown email, blocked account or
    wrong password.
    """
    user = find_user_by_email(db, email)
    if not user:
        return None

    if user.is_blocked:
        logger.info("Login refused for blocked account %s", user.id)
        return None

    if not verify_password(password or "", user.password_hash):
        return None

    hospital = None
    if user.role == ROLE_OPERATOR:
        hospital = get_hospital_for_operator(db, user.id)

    if session_key:
        save_active_session(db, session_key, user, hospital)
    return user, hospital


def logout_user(db: Session, session_key: str | None) -> None:
    """Clear the client's active session. Idempotent."""
    clear_active_session(db, session_key)


def block_user(db: Session, user_id: str, reason: str = "Fake alarm report"):
    """Permanently lock an account. There is no unblock operation.

    Every stored session of the account is discarded, on any client.
    """
    user = db.get(User, user_id)
    if not user:
        return None

    user.is_blocked = True
    user.blocked_reason = reason
    db.commit()
    clear_user_sessions(db, user_id)

    logger.warning("Account %s blocked: %s", user_id, reason)
    return user


def ensure_default_users():
    """
    Creates demo accounts on a fresh database: one operator with a hospital
    and two ambulances, and one reporting user. Password for both: pass123
    """
    from models.ambulance import Ambulance

    with get_db_context() as db:
        # If any users already exist, skip
        if db.query(User).first():
            return

        operator = User(id=generate_id(), email="operator@demo.bo", phone="70000001",
                        role=ROLE_OPERATOR, password_hash=hash_password("pass123"))
        reporter = User(id=generate_id(), email="user@demo.bo", phone="70000002", ci="1234567SC",
                        role=ROLE_USER, password_hash=hash_password("pass123"))
        hospital = Hospital(
            id=generate_id(),
            name="Demo Private Hospital",
            latitude=FALLBACK_LOCATION["latitude"],
            longitude=FALLBACK_LOCATION["longitude"],
            admin_phone="33000000",
            entity_id="DEMO-001",
            email=operator.email,
            operator_id=operator.id,
        )
        ambulances = [
            Ambulance(id=generate_id(), plate_number="1234-ABC", hospital_id=hospital.id),
            Ambulance(id=generate_id(), plate_number="5678-DEF", hospital_id=hospital.id),
        ]

        db.add_all([operator, reporter])
        db.flush()
        db.add(hospital)
        db.flush()
        db.add_all(ambulances)
        db.commit()
        logger.info("Default demo accounts created.")
