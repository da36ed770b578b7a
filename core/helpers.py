import streamlit as st


TRIAGE_BADGES = {"Red": "🔴 Red", "Yellow": "🟡 Yellow", "Green": "🟢 Green"}
STATUS_BADGES = {
    "Pending": "🕒 Pending",
    "Dispatched": "🚑 Dispatched",
    "Attended": "✅ Attended",
    "False Alarm": "⛔ False Alarm",
}


def triage_badge(level: str) -> str:
    return TRIAGE_BADGES.get(level, level or "-")


def status_badge(status: str) -> str:
    return STATUS_BADGES.get(status, status or "-")


# -----------------------------
# Sidebar helpers
# -----------------------------
def hide_default_sidebar_nav():
    """Hide Streamlit's default multi-page navigation for a cleaner custom menu."""
    st.markdown(
        """
        <style>
        [data-testid="stSidebarNav"] { display: none; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def hide_sidebar_completely():
    """Completely hide Streamlit's sidebar and the toggle control.

    Used on login/registration views where navigation should not be visible.
    """
    st.markdown(
        """
        <style>
        [data-testid="stSidebar"] { display: none !important; }
        [data-testid="collapsedControl"] { display: none !important; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_user_sidebar():
    """Reporting user menu: My Reports, New Emergency, Logout."""
    hide_default_sidebar_nav()
    with st.sidebar:
        st.markdown("### Emergency Menu")
        if st.button("My Reports", use_container_width=True):
            st.switch_page("pages/u_dashboard.py")
        if st.button("Report Emergency", use_container_width=True, type="primary"):
            st.switch_page("pages/u_new_report.py")
        st.divider()
        if st.button("Logout", use_container_width=True):
            from core.session_manager import logout
            logout()


def render_operator_sidebar():
    """Hospital operator menu: Reports, Ambulances, Drivers, Logout."""
    hide_default_sidebar_nav()
    with st.sidebar:
        hospital = st.session_state.get("hospital")
        st.markdown(f"### {hospital.name if hospital else 'Dispatch Center'}")
        if st.button("Reports", use_container_width=True):
            st.switch_page("pages/o_dashboard.py")
        if st.button("Ambulances", use_container_width=True):
            st.switch_page("pages/o_ambulances.py")
        if st.button("Drivers", use_container_width=True):
            st.switch_page("pages/o_drivers.py")
        st.divider()
        if st.button("Logout", use_container_width=True):
            from core.session_manager import logout
            logout()
