import os

import streamlit as st

from core.config import DASHBOARD_REFRESH_SECONDS
from core.database import get_db_context
from core.errors import DispatchError
from core.helpers import render_operator_sidebar, status_badge, triage_badge
from core.session_manager import require_role
from core.time_utils import format_local
from models.user import ROLE_OPERATOR
from services.fleet_service import ambulance_plate, fleet_summary, list_ambulances
from services import ai_service
from services.report_service import dispatch, list_reports, mark_false_alarm, visible_pending


def _render_report_details(r):
    left, right = st.columns([3, 2])
    with left:
        st.markdown(f"**{r.accident_type}** • {triage_badge(r.ai_triage_level)}")
        st.caption(f"{format_local(r.timestamp)} • {r.user_name} • 📞 {r.user_phone}")
        st.write(f"📍 {r.latitude:.5f}, {r.longitude:.5f}")
        if r.description:
            st.write(r.description)
        if r.ai_justification:
            st.caption(f"AI: {r.ai_justification}")
        if r.ai_degraded:
            st.warning("AI analysis unavailable. Manual assessment required.")
    with right:
        if r.image_path:
            if os.path.exists(r.image_path):
                st.image(r.image_path, use_container_width=True)
            else:
                st.caption("Photo not available.")
        st.write(f"Injured: {r.injured_count} • Confidence: {r.ai_confidence or 0}%")
        answers = r.triage_answers or {}
        st.caption(" • ".join(f"{k.capitalize()}: {v}" for k, v in answers.items()))


@st.fragment(run_every=DASHBOARD_REFRESH_SECONDS)
def pending_queue():
    hospital = st.session_state.hospital

    with get_db_context() as db:
        reports = visible_pending(db, hospital.id)
        available = [a for a in list_ambulances(db, hospital.id) if a.is_available]
        summary = fleet_summary(db, hospital.id)

    notice = st.session_state.pop("dispatch_notice", None)
    if notice:
        st.success(notice)

    c1, c2, c3 = st.columns(3)
    c1.metric("Pending reports", len(reports))
    c2.metric("Available ambulances", summary["available"])
    c3.metric("In use", summary["in_use"])

    if not available:
        st.warning("No ambulances available. New reports will not be shown until one is free.")

    if not reports:
        st.info("No pending reports.")
        return

    plates = {a.id: a.plate_number for a in available}

    for r in reports:
        with st.container(border=True):
            _render_report_details(r)

            cols = st.columns([2, 1, 1])
            with cols[0]:
                ambulance_id = st.selectbox(
                    "Ambulance",
                    list(plates.keys()),
                    format_func=plates.get,
                    key=f"amb_{r.id}",
                    disabled=not plates,
                    label_visibility="collapsed",
                )
            with cols[1]:
                if st.button("🚑 Dispatch", key=f"dispatch_{r.id}", type="primary", disabled=not plates):
                    try:
                        with get_db_context() as db:
                            dispatch(db, r.id, ambulance_id)
                    except DispatchError as e:
                        st.error(str(e))
                    else:
                        st.session_state.dispatch_notice = f"Ambulance {plates[ambulance_id]} dispatched."
                        st.rerun()
            with cols[2]:
                if st.button("⛔ False alarm", key=f"false_{r.id}"):
                    try:
                        with get_db_context() as db:
                            mark_false_alarm(db, r.id)
                    except DispatchError as e:
                        st.error(str(e))
                    else:
                        st.session_state.dispatch_notice = "Report closed as a false alarm."
                        st.rerun()


def all_reports():
    with get_db_context() as db:
        reports = list_reports(db)
        plates = {r.id: ambulance_plate(db, r.assigned_ambulance_id) for r in reports}

    if not reports:
        st.info("No reports yet.")
        return

    rows = [
        {
            "Time": format_local(r.timestamp),
            "Reporter": r.user_name,
            "Phone": r.user_phone,
            "Type": r.accident_type,
            "Triage": triage_badge(r.ai_triage_level),
            "Status": status_badge(r.status),
            "Ambulance": plates[r.id] if r.assigned_ambulance_id else "-",
            "Dispatched": format_local(r.dispatch_time),
        }
        for r in reports
    ]
    st.dataframe(rows, use_container_width=True, hide_index=True)


def ai_status():
    info = ai_service.get_model_info()
    with st.expander("AI model status"):
        st.write(f"Model: {info['model']} • Timeout: {info['timeout']:.0f}s")
        if not info["configured"]:
            st.warning("No API key configured. New reports are analysed manually.")
            return
        if st.button("Test connection"):
            with st.spinner("Contacting the model..."):
                result = ai_service.check_connection()
            if result["success"]:
                st.success(result["message"])
            else:
                st.error(result["message"])


def main():
    require_role(ROLE_OPERATOR)
    render_operator_sidebar()

    hospital = st.session_state.hospital
    st.title(f"Dispatch Center: {hospital.name}")

    ai_status()

    pending_tab, all_tab = st.tabs(["Pending", "All reports"])
    with pending_tab:
        pending_queue()
    with all_tab:
        all_reports()


if __name__ == "__main__":
    main()
