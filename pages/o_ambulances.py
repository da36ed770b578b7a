import streamlit as st

from core.database import get_db_context
from core.errors import FleetError
from core.helpers import render_operator_sidebar
from core.session_manager import require_role
from models.ambulance import AMBULANCE_STATUSES, STATUS_AVAILABLE
from models.user import ROLE_OPERATOR
from services.fleet_service import (
    create_ambulance,
    delete_ambulance,
    fleet_summary,
    list_ambulances,
    list_drivers,
    update_ambulance,
)


def _status_label(status: str) -> str:
    return "🟢 Available" if status == STATUS_AVAILABLE else "🔴 In use"


def render_add_form(hospital_id: str):
    with st.form("add_ambulance", clear_on_submit=True):
        st.subheader("Add ambulance")
        plate = st.text_input("Plate number", placeholder="e.g. 1234-ABC")
        status = st.selectbox("Status", AMBULANCE_STATUSES, format_func=_status_label)
        submitted = st.form_submit_button("Add", type="primary")

    if submitted:
        try:
            with get_db_context() as db:
                ambulance = create_ambulance(db, hospital_id, plate, status)
            st.session_state.fleet_notice = f"Ambulance {ambulance.plate_number} added."
            st.rerun()
        except FleetError as e:
            st.error(str(e))


def render_ambulance(hospital_id: str, ambulance, driver_name: str | None):
    with st.container(border=True):
        cols = st.columns([2, 2, 2, 1])
        cols[0].markdown(f"**{ambulance.plate_number}**")
        cols[1].write(_status_label(ambulance.status))
        cols[2].write(f"Driver: {driver_name or 'None'}")
        if cols[3].button("🗑️", key=f"del_{ambulance.id}", help="Delete ambulance"):
            with get_db_context() as db:
                delete_ambulance(db, hospital_id, ambulance.id)
            st.session_state.fleet_notice = f"Ambulance {ambulance.plate_number} deleted."
            st.rerun()

        with st.expander("Edit"):
            with st.form(f"edit_{ambulance.id}"):
                plate = st.text_input("Plate number", value=ambulance.plate_number)
                status = st.selectbox(
                    "Status",
                    AMBULANCE_STATUSES,
                    index=AMBULANCE_STATUSES.index(ambulance.status),
                    format_func=_status_label,
                )
                saved = st.form_submit_button("Save")
            if saved:
                try:
                    with get_db_context() as db:
                        update_ambulance(db, hospital_id, ambulance.id, plate_number=plate, status=status)
                    st.session_state.fleet_notice = "Ambulance updated."
                    st.rerun()
                except FleetError as e:
                    st.error(str(e))


def main():
    require_role(ROLE_OPERATOR)
    render_operator_sidebar()

    hospital = st.session_state.hospital
    st.title("Ambulances")

    notice = st.session_state.pop("fleet_notice", None)
    if notice:
        st.success(notice)

    with get_db_context() as db:
        ambulances = list_ambulances(db, hospital.id)
        drivers = list_drivers(db, hospital.id)
        summary = fleet_summary(db, hospital.id)

    c1, c2, c3 = st.columns(3)
    c1.metric("Total", summary["total"])
    c2.metric("Available", summary["available"])
    c3.metric("In use", summary["in_use"])

    render_add_form(hospital.id)
    st.write("---")

    if not ambulances:
        st.info("No ambulances registered yet.")
        return

    drivers_by_ambulance = {d.ambulance_id: d.full_name for d in drivers if d.ambulance_id}
    for ambulance in ambulances:
        render_ambulance(hospital.id, ambulance, drivers_by_ambulance.get(ambulance.id))


if __name__ == "__main__":
    main()
