import streamlit as st

from core.database import get_db_context
from models.user import ROLE_OPERATOR
from services.session_service import restore_active_session
from services.user_service import logout_user

# URL query parameter carrying this browser's session key across reloads
SESSION_PARAM = "sid"


def _sync_session_param():
    key = st.session_state.get("session_key")
    if key:
        if st.query_params.get(SESSION_PARAM) != key:
            st.query_params[SESSION_PARAM] = key
    elif SESSION_PARAM in st.query_params:
        del st.query_params[SESSION_PARAM]


def init_session_state():
    """Ensure required session keys exist, restoring this client's stored session once."""
    if "session_key" not in st.session_state:
        st.session_state.session_key = st.query_params.get(SESSION_PARAM)
    if "user" not in st.session_state:
        with get_db_context() as db:
            user, hospital = restore_active_session(db, st.session_state.session_key)
        st.session_state.user = user
        st.session_state.hospital = hospital
        st.session_state.role = user.role if user else None
        if user is None:
            st.session_state.session_key = None
    if "hospital" not in st.session_state:
        st.session_state.hospital = None
    if "role" not in st.session_state:
        st.session_state.role = None

    # Page switches drop query params; put the key back
    _sync_session_param()


def login(user, hospital=None, session_key=None):
    """Mirror the logged-in account (and operator hospital) into the UI session.

    The durable session record under session_key is written by
    user_service.login_user / register_user.
    """
    st.session_state.user = user
    st.session_state.role = user.role
    st.session_state.hospital = hospital
    st.session_state.session_key = session_key
    _sync_session_param()


def logout():
    """Clear this client's session and redirect to main app page."""
    with get_db_context() as db:
        logout_user(db, st.session_state.get("session_key"))
    clear_session()

    st.query_params.clear()

    st.switch_page("app.py")


def clear_session():
    """Clear UI session without touching the stored record or redirecting."""
    st.session_state.user = None
    st.session_state.role = None
    st.session_state.hospital = None
    st.session_state.session_key = None
    _sync_session_param()


def require_role(role: str):
    """Restrict page by role; send unauthorized users to app.py."""
    init_session_state()

    if st.session_state.user is None:
        st.warning("Please log in to access this page.")
        st.switch_page("app.py")

    current = (st.session_state.role or "").strip().lower()
    if current != (role or "").strip().lower():
        st.error(f" Access denied. This page requires '{role}' role.")
        st.switch_page("app.py")

    if role == ROLE_OPERATOR and st.session_state.hospital is None:
        st.error("No hospital is linked to this operator account.")
        st.switch_page("app.py")
