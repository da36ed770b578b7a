import logging

from sqlalchemy.orm import Session

from core.database import generate_id
from core.errors import FleetError
from models.ambulance import Ambulance, AMBULANCE_STATUSES, STATUS_AVAILABLE, STATUS_IN_USE
from models.driver import Driver

logger = logging.getLogger(__name__)


def _check_status(status: str) -> str:
    if status not in AMBULANCE_STATUSES:
        raise FleetError(f"Invalid ambulance status: {status}. Expected one of {', '.join(AMBULANCE_STATUSES)}.")
    return status


# ------------------------------------------
# Ambulances
# ------------------------------------------
def list_ambulances(db: Session, hospital_id: str):
    return (
        db.query(Ambulance)
        .filter(Ambulance.hospital_id == hospital_id)
        .order_by(Ambulance.plate_number)
        .all()
    )


def get_ambulance(db: Session, ambulance_id: str):
    return db.get(Ambulance, ambulance_id)


def _hospital_ambulance(db: Session, hospital_id: str, ambulance_id: str):
    return (
        db.query(Ambulance)
        .filter(Ambulance.id == ambulance_id, Ambulance.hospital_id == hospital_id)
        .first()
    )


def create_ambulance(db: Session, hospital_id: str, plate_number: str, status: str = STATUS_AVAILABLE):
    plate_number = (plate_number or "").strip().upper()
    if not plate_number:
        raise FleetError("Plate number cannot be empty.")

    ambulance = Ambulance(
        id=generate_id(),
        plate_number=plate_number,
        status=_check_status(status),
        hospital_id=hospital_id,
    )
    db.add(ambulance)
    db.commit()
    db.refresh(ambulance)
    return ambulance


def update_ambulance(
    db: Session,
    hospital_id: str,
    ambulance_id: str,
    *,
    plate_number: str | None = None,
    status: str | None = None,
):
    """Update one of the hospital's ambulances; None if it has no such ambulance."""
    ambulance = _hospital_ambulance(db, hospital_id, ambulance_id)
    if not ambulance:
        return None

    if plate_number is not None:
        plate_number = plate_number.strip().upper()
        if not plate_number:
            raise FleetError("Plate number cannot be empty.")
        ambulance.plate_number = plate_number
    if status is not None:
        ambulance.status = _check_status(status)

    db.commit()
    db.refresh(ambulance)
    return ambulance


def delete_ambulance(db: Session, hospital_id: str, ambulance_id: str) -> bool:
    """Delete one of the hospital's ambulances and unassign it from any driver, in one commit."""
    ambulance = _hospital_ambulance(db, hospital_id, ambulance_id)
    if not ambulance:
        return False

    db.query(Driver).filter(Driver.ambulance_id == ambulance_id).update(
        {Driver.ambulance_id: None}, synchronize_session="fetch"
    )
    db.delete(ambulance)
    db.commit()
    return True


def has_available_ambulance(db: Session, hospital_id: str) -> bool:
    """Gate for offering new reports to a hospital."""
    return db.query(
        db.query(Ambulance)
        .filter(Ambulance.hospital_id == hospital_id, Ambulance.status == STATUS_AVAILABLE)
        .exists()
    ).scalar()


def fleet_summary(db: Session, hospital_id: str) -> dict:
    ambulances = list_ambulances(db, hospital_id)
    available = sum(1 for a in ambulances if a.status == STATUS_AVAILABLE)
    in_use = sum(1 for a in ambulances if a.status == STATUS_IN_USE)
    return {"total": len(ambulances), "available": available, "in_use": in_use}


def ambulance_plate(db: Session, ambulance_id: str | None) -> str:
    if not ambulance_id:
        return "Unassigned"
    ambulance = db.get(Ambulance, ambulance_id)
    return ambulance.plate_number if ambulance else "Unassigned"


# ------------------------------------------
# Drivers
# ------------------------------------------
def list_drivers(db: Session, hospital_id: str):
    return (
        db.query(Driver)
        .filter(Driver.hospital_id == hospital_id)
        .order_by(Driver.last_name, Driver.first_name)
        .all()
    )


def get_driver(db: Session, driver_id: str):
    return db.get(Driver, driver_id)


def _hospital_driver(db: Session, hospital_id: str, driver_id: str):
    return db.query(Driver).filter(Driver.id == driver_id, Driver.hospital_id == hospital_id).first()


def assignable_ambulances(db: Session, hospital_id: str, editing_driver_id: str | None = None):
    """Hospital ambulances no driver holds, plus the edited driver's own one."""
    taken_query = db.query(Driver.ambulance_id).filter(Driver.ambulance_id.isnot(None))
    if editing_driver_id:
        taken_query = taken_query.filter(Driver.id != editing_driver_id)
    taken = {row[0] for row in taken_query.all()}

    return [a for a in list_ambulances(db, hospital_id) if a.id not in taken]


def _check_assignment(db: Session, hospital_id: str, ambulance_id: str | None, driver_id: str | None = None):
    if not ambulance_id:
        return None

    allowed = {a.id for a in assignable_ambulances(db, hospital_id, editing_driver_id=driver_id)}
    if ambulance_id not in allowed:
        raise FleetError("Ambulance is not available for assignment (unknown or already assigned to another driver).")
    return ambulance_id


def create_driver(
    db: Session,
    hospital_id: str,
    first_name: str,
    last_name: str,
    license_number: str,
    ambulance_id: str | None = None,
):
    first_name, last_name = (first_name or "").strip(), (last_name or "").strip()
    license_number = (license_number or "").strip()
    if not first_name or not last_name or not license_number:
        raise FleetError("First name, last name and license number are required.")

    driver = Driver(
        id=generate_id(),
        hospital_id=hospital_id,
        first_name=first_name,
        last_name=last_name,
        license_number=license_number,
        ambulance_id=_check_assignment(db, hospital_id, ambulance_id),
    )
    db.add(driver)
    db.commit()
    db.refresh(driver)
    return driver


_UNSET = object()


def update_driver(
    db: Session,
    hospital_id: str,
    driver_id: str,
    *,
    first_name: str | None = None,
    last_name: str | None = None,
    license_number: str | None = None,
    ambulance_id=_UNSET,
):
    """Update one of the hospital's drivers; pass ambulance_id=None to unassign."""
    driver = _hospital_driver(db, hospital_id, driver_id)
    if not driver:
        return None

    for field, value in (("first_name", first_name), ("last_name", last_name), ("license_number", license_number)):
        if value is None:
            continue
        value = value.strip()
        if not value:
            raise FleetError(f"{field.replace('_', ' ').capitalize()} cannot be empty.")
        setattr(driver, field, value)
    if ambulance_id is not _UNSET:
        driver.ambulance_id = _check_assignment(db, driver.hospital_id, ambulance_id, driver_id=driver.id)

    db.commit()
    db.refresh(driver)
    return driver


def delete_driver(db: Session, hospital_id: str, driver_id: str) -> bool:
    driver = _hospital_driver(db, hospital_id, driver_id)
    if not driver:
        return False
    db.delete(driver)
    db.commit()
    return True
