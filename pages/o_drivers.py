import streamlit as st

from core.database import get_db_context
from core.errors import FleetError
from core.helpers import render_operator_sidebar
from core.session_manager import require_role
from models.user import ROLE_OPERATOR
from services.fleet_service import (
    assignable_ambulances,
    create_driver,
    delete_driver,
    list_ambulances,
    list_drivers,
    update_driver,
)

NO_AMBULANCE = ""


def _ambulance_choices(ambulances) -> dict:
    choices = {NO_AMBULANCE: "No ambulance"}
    choices.update({a.id: a.plate_number for a in ambulances})
    return choices


def render_add_form(hospital_id: str):
    with get_db_context() as db:
        choices = _ambulance_choices(assignable_ambulances(db, hospital_id))

    with st.form("add_driver", clear_on_submit=True):
        st.subheader("Add driver")
        c1, c2 = st.columns(2)
        first_name = c1.text_input("First name")
        last_name = c2.text_input("Last name")
        license_number = st.text_input("License number")
        ambulance_id = st.selectbox("Ambulance", list(choices.keys()), format_func=choices.get)
        submitted = st.form_submit_button("Add", type="primary")

    if submitted:
        try:
            with get_db_context() as db:
                driver = create_driver(
                    db,
                    hospital_id,
                    first_name,
                    last_name,
                    license_number,
                    ambulance_id=ambulance_id or None,
                )
            st.session_state.fleet_notice = f"Driver {driver.full_name} added."
            st.rerun()
        except FleetError as e:
            st.error(str(e))


def render_driver(hospital_id: str, driver, plates: dict):
    with st.container(border=True):
        cols = st.columns([3, 2, 2, 1])
        cols[0].markdown(f"**{driver.full_name}**")
        cols[1].write(f"License: {driver.license_number}")
        cols[2].write(f"Ambulance: {plates.get(driver.ambulance_id, 'None')}")
        if cols[3].button("🗑️", key=f"del_{driver.id}", help="Delete driver"):
            with get_db_context() as db:
                delete_driver(db, hospital_id, driver.id)
            st.session_state.fleet_notice = f"Driver {driver.full_name} deleted."
            st.rerun()

        with st.expander("Edit"):
            with get_db_context() as db:
                choices = _ambulance_choices(
                    assignable_ambulances(db, hospital_id, editing_driver_id=driver.id)
                )
            keys = list(choices.keys())
            current = driver.ambulance_id if driver.ambulance_id in choices else NO_AMBULANCE

            with st.form(f"edit_{driver.id}"):
                c1, c2 = st.columns(2)
                first_name = c1.text_input("First name", value=driver.first_name)
                last_name = c2.text_input("Last name", value=driver.last_name)
                license_number = st.text_input("License number", value=driver.license_number)
                ambulance_id = st.selectbox(
                    "Ambulance", keys, index=keys.index(current), format_func=choices.get
                )
                saved = st.form_submit_button("Save")
            if saved:
                try:
                    with get_db_context() as db:
                        update_driver(
                            db,
                            hospital_id,
                            driver.id,
                            first_name=first_name,
                            last_name=last_name,
                            license_number=license_number,
                            ambulance_id=ambulance_id or None,
                        )
                    st.session_state.fleet_notice = "Driver updated."
                    st.rerun()
                except FleetError as e:
                    st.error(str(e))


def main():
    require_role(ROLE_OPERATOR)
    render_operator_sidebar()

    hospital = st.session_state.hospital
    st.title("Drivers")

    notice = st.session_state.pop("fleet_notice", None)
    if notice:
        st.success(notice)

    render_add_form(hospital.id)
    st.write("---")

    with get_db_context() as db:
        drivers = list_drivers(db, hospital.id)
        plates = {a.id: a.plate_number for a in list_ambulances(db, hospital.id)}

    if not drivers:
        st.info("No drivers registered yet.")
        return

    for driver in drivers:
        render_driver(hospital.id, driver, plates)


if __name__ == "__main__":
    main()
