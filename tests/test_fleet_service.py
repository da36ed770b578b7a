import pytest

from core.errors import FleetError
from models.ambulance import STATUS_AVAILABLE, STATUS_IN_USE
from models.driver import Driver
from services.fleet_service import (
    ambulance_plate,
    assignable_ambulances,
    create_ambulance,
    create_driver,
    delete_ambulance,
    delete_driver,
    fleet_summary,
    has_available_ambulance,
    list_ambulances,
    list_drivers,
    update_ambulance,
    update_driver,
)


def test_create_ambulance_normalizes_plate(db, hospital):
    ambulance = create_ambulance(db, hospital.id, "  9999-xyz ")
    assert ambulance.plate_number == "9999-XYZ"
    assert ambulance.status == STATUS_AVAILABLE
    assert ambulance.is_available


def test_create_ambulance_rejects_bad_input(db, hospital):
    with pytest.raises(FleetError):
        create_ambulance(db, hospital.id, "   ")
    with pytest.raises(FleetError):
        create_ambulance(db, hospital.id, "1111-AAA", status="broken")
    assert list_ambulances(db, hospital.id) == []


def test_list_ambulances_is_per_hospital(db, hospital, other_hospital):
    create_ambulance(db, hospital.id, "2222-BBB")
    create_ambulance(db, hospital.id, "1111-AAA")
    create_ambulance(db, other_hospital.id, "3333-CCC")

    plates = [a.plate_number for a in list_ambulances(db, hospital.id)]
    assert plates == ["1111-AAA", "2222-BBB"]


def test_update_ambulance(db, ambulance):
    updated = update_ambulance(
        db, ambulance.hospital_id, ambulance.id, plate_number="4321-zyx", status=STATUS_IN_USE
    )
    assert updated.plate_number == "4321-ZYX"
    assert updated.status == STATUS_IN_USE

    assert update_ambulance(db, ambulance.hospital_id, "missing", status=STATUS_AVAILABLE) is None
    with pytest.raises(FleetError):
        update_ambulance(db, ambulance.hospital_id, ambulance.id, status="parked")


def test_availability_gate_and_summary(db, hospital):
    assert not has_available_ambulance(db, hospital.id)
    assert fleet_summary(db, hospital.id) == {"total": 0, "available": 0, "in_use": 0}

    first = create_ambulance(db, hospital.id, "1111-AAA")
    create_ambulance(db, hospital.id, "2222-BBB", status=STATUS_IN_USE)
    assert has_available_ambulance(db, hospital.id)
    assert fleet_summary(db, hospital.id) == {"total": 2, "available": 1, "in_use": 1}

    update_ambulance(db, hospital.id, first.id, status=STATUS_IN_USE)
    assert not has_available_ambulance(db, hospital.id)


def test_ambulance_plate_display(db, ambulance):
    assert ambulance_plate(db, ambulance.id) == "1234-ABC"
    assert ambulance_plate(db, None) == "Unassigned"
    assert ambulance_plate(db, "missing") == "Unassigned"


def test_create_driver_requires_fields(db, hospital):
    with pytest.raises(FleetError):
        create_driver(db, hospital.id, "Ana", "", "LIC-1")
    assert list_drivers(db, hospital.id) == []


def test_assignable_ambulances_excludes_taken(db, hospital, ambulance):
    spare = create_ambulance(db, hospital.id, "5555-EEE")
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1", ambulance_id=ambulance.id)

    assert [a.id for a in assignable_ambulances(db, hospital.id)] == [spare.id]

    # The edited driver keeps seeing their own ambulance
    own_view = {a.id for a in assignable_ambulances(db, hospital.id, editing_driver_id=driver.id)}
    assert own_view == {ambulance.id, spare.id}


def test_one_driver_per_ambulance(db, hospital, ambulance):
    create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1", ambulance_id=ambulance.id)

    with pytest.raises(FleetError):
        create_driver(db, hospital.id, "Luis", "Paz", "LIC-2", ambulance_id=ambulance.id)

    other = create_driver(db, hospital.id, "Luis", "Paz", "LIC-2")
    with pytest.raises(FleetError):
        update_driver(db, hospital.id, other.id, ambulance_id=ambulance.id)
    assert db.get(Driver, other.id).ambulance_id is None


def test_driver_cannot_take_other_hospitals_ambulance(db, hospital, other_hospital):
    foreign = create_ambulance(db, other_hospital.id, "7777-GGG")
    with pytest.raises(FleetError):
        create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1", ambulance_id=foreign.id)


def test_update_driver(db, hospital, ambulance):
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1", ambulance_id=ambulance.id)

    updated = update_driver(
        db, hospital.id, driver.id, first_name=" Ana Maria ", license_number="LIC-9"
    )
    assert updated.full_name == "Ana Maria Rojas"
    assert updated.license_number == "LIC-9"
    assert updated.ambulance_id == ambulance.id

    updated = update_driver(db, hospital.id, driver.id, ambulance_id=None)
    assert updated.ambulance_id is None

    assert update_driver(db, hospital.id, "missing", first_name="X") is None


def test_update_driver_rejects_blank_name(db, hospital):
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1")
    with pytest.raises(FleetError):
        update_driver(db, hospital.id, driver.id, last_name="  ")


def test_delete_ambulance_unassigns_driver(db, hospital, ambulance):
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1", ambulance_id=ambulance.id)

    assert delete_ambulance(db, hospital.id, ambulance.id)
    db.refresh(driver)
    assert driver.ambulance_id is None
    assert list_ambulances(db, hospital.id) == []
    assert not delete_ambulance(db, hospital.id, ambulance.id)


def test_delete_driver(db, hospital):
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1")
    assert delete_driver(db, hospital.id, driver.id)
    assert list_drivers(db, hospital.id) == []
    assert not delete_driver(db, hospital.id, driver.id)


def test_ambulance_changes_are_scoped_to_hospital(db, other_hospital, ambulance):
    assert update_ambulance(db, other_hospital.id, ambulance.id, status=STATUS_IN_USE) is None
    assert not delete_ambulance(db, other_hospital.id, ambulance.id)

    db.refresh(ambulance)
    assert ambulance.status == STATUS_AVAILABLE
    assert [a.id for a in list_ambulances(db, ambulance.hospital_id)] == [ambulance.id]


def test_driver_changes_are_scoped_to_hospital(db, hospital, other_hospital):
    driver = create_driver(db, hospital.id, "Ana", "Rojas", "LIC-1")

    assert update_driver(db, other_hospital.id, driver.id, first_name="Eva") is None
    assert not delete_driver(db, other_hospital.id, driver.id)

    db.refresh(driver)
    assert driver.first_name == "Ana"
    assert [d.id for d in list_drivers(db, hospital.id)] == [driver.id]
