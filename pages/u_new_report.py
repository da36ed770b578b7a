import streamlit as st

from core.errors import FakeAlarmError, ValidationError
from core.helpers import render_user_sidebar, triage_badge
from core.session_manager import clear_session, require_role
from core.validation import get_current_location
from models.user import ROLE_USER
from services import ai_service
from services.submission_service import analyze_submission, process_submission


def _upload_key(uploaded_file):
    return (uploaded_file.name, uploaded_file.size)


def _locked_out(message: str):
    st.session_state.pop("report_analysis", None)
    clear_session()
    st.error(message)
    st.page_link("app.py", label="Back to start")
    st.stop()


def _show_analysis(result: dict):
    analysis = result["analysis"]
    st.subheader("AI Assessment")
    if analysis.degraded:
        st.warning("Automatic analysis is not available. Your report will be assessed manually.")

    c1, c2, c3 = st.columns(3)
    c1.metric("Triage", triage_badge(analysis.triage_level))
    c2.metric("Injured", analysis.injured_count)
    c3.metric("Confidence", f"{analysis.confidence}%")

    st.write(f"**Accident type:** {analysis.accident_type}")
    st.write(f"**Justification:** {analysis.justification}")
    with st.expander("Triage answers"):
        for question, answer in analysis.triage_answers.items():
            st.write(f"{question.capitalize()}: {answer}")


def main():
    require_role(ROLE_USER)
    render_user_sidebar()

    user = st.session_state.user

    st.title("🚨 Report an Emergency")
    st.warning("Fake or joke reports permanently block your account.")
    if not ai_service.is_configured():
        st.info("Automatic photo analysis is offline. Your report will be assessed manually.")

    # --- Location ---
    if "report_location" not in st.session_state:
        with st.spinner("Getting your location..."):
            st.session_state.report_location = get_current_location()
    location = st.session_state.report_location
    st.write(f"📍 Location: {location['latitude']:.4f}, {location['longitude']:.4f}")
    if st.button("Refresh location"):
        with st.spinner("Getting your location..."):
            st.session_state.report_location = get_current_location()
        st.rerun()

    # --- Photo ---
    uploaded = st.file_uploader("Photo of the emergency", type=["jpg", "jpeg", "png", "webp"])
    if uploaded is None:
        st.session_state.pop("report_analysis", None)
        st.info("Upload a photo to continue.")
        return

    st.image(uploaded, caption="Uploaded photo", use_container_width=True)

    cached = st.session_state.get("report_analysis")
    if cached is None or cached["key"] != _upload_key(uploaded):
        if st.button("Analyze photo", type="primary"):
            try:
                with st.spinner("Analyzing the photo..."):
                    result = analyze_submission(user, uploaded)
            except FakeAlarmError as e:
                _locked_out(str(e))
            except ValidationError as e:
                st.error(str(e))
                return
            st.session_state.report_analysis = {"key": _upload_key(uploaded), "result": result}
            st.rerun()
        return

    result = cached["result"]
    _show_analysis(result)

    # --- Submit ---
    with st.form("report_form"):
        description = st.text_area("Description", value=result["description"], height=150)
        submitted = st.form_submit_button("Send report", type="primary")

    if submitted:
        try:
            with st.spinner("Sending report..."):
                outcome = process_submission(
                    user,
                    location,
                    uploaded,
                    description=description.strip() or None,
                    analysis_result=result,
                )
        except FakeAlarmError as e:
            _locked_out(str(e))
        except ValidationError as e:
            st.error(str(e))
            return

        st.session_state.pop("report_analysis", None)
        st.success(f"Report sent. Triage level: {triage_badge(outcome['triage_level'])}")
        if outcome["degraded"]:
            st.info("Your report will be reviewed manually by the dispatch center.")
        st.page_link("pages/u_dashboard.py", label="View my reports")


if __name__ == "__main__":
    main()
