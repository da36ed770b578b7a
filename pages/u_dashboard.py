import streamlit as st

from core.database import get_db_context
from core.helpers import render_user_sidebar, status_badge, triage_badge
from core.session_manager import require_role
from core.time_utils import format_local
from models.user import ROLE_USER
from services.fleet_service import ambulance_plate
from services.report_service import list_user_reports


def main():
    require_role(ROLE_USER)
    render_user_sidebar()

    user = st.session_state.user

    st.title("My Emergency Reports")
    st.caption(f"Signed in as {user.email} • Phone {user.phone}")

    if st.button("🚨 Report a new emergency", type="primary", use_container_width=True):
        st.switch_page("pages/u_new_report.py")

    st.write("---")

    with get_db_context() as db:
        reports = list_user_reports(db, user.id)
        plates = {r.id: ambulance_plate(db, r.assigned_ambulance_id) for r in reports}

    if not reports:
        st.info("You have not submitted any reports yet.")
        return

    for r in reports:
        with st.container(border=True):
            left, right = st.columns([3, 2])
            with left:
                st.markdown(f"**{r.accident_type}** • {format_local(r.timestamp)}")
                st.write(f"Status: {status_badge(r.status)}")
                st.write(f"Triage: {triage_badge(r.ai_triage_level)}")
                if r.description:
                    st.caption(r.description)
            with right:
                st.write(f"Injured: {r.injured_count}")
                if r.assigned_ambulance_id:
                    st.write(f"Ambulance: {plates[r.id]}")
                    st.write(f"Dispatched: {format_local(r.dispatch_time)}")
                if r.ai_degraded:
                    st.caption("AI analysis unavailable, awaiting manual assessment.")


if __name__ == "__main__":
    main()
