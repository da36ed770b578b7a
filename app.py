import streamlit as st

from core.config import configure_logging
from core.database import get_db_context, init_db
from core.helpers import hide_sidebar_completely
from core.session_manager import init_session_state, login, logout
from core.validation import get_current_location, validate_registration
from models.user import ROLE_OPERATOR, ROLE_USER
from services.session_service import new_session_key
from services.user_service import ensure_default_users, login_user, register_user


def go_to(page_path: str):
    st.switch_page(page_path)


def dashboard_for(role: str) -> str:
    return "pages/o_dashboard.py" if role == ROLE_OPERATOR else "pages/u_dashboard.py"


def _show_errors(errors: dict):
    for message in errors.values():
        st.error(message)


def render_login():
    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        session_key = new_session_key()
        with get_db_context() as db:
            result = login_user(db, email, password, session_key=session_key)
        if result is None:
            st.error("Invalid credentials or blocked account.")
            return
        user, hospital = result
        login(user, hospital, session_key)
        go_to(dashboard_for(user.role))


def render_user_signup():
    st.caption("Report emergencies from your phone. Fake reports lead to a permanent ban.")
    with st.form("user_signup_form"):
        email = st.text_input("Email", key="su_user_email")
        phone = st.text_input("Phone (8 digits)", key="su_user_phone")
        ci = st.text_input("CI (e.g. 1234567SC)", key="su_user_ci")
        password = st.text_input("Password", type="password", key="su_user_pass")
        submitted = st.form_submit_button("Create account")

    if submitted:
        profile = {"email": email, "phone": phone, "ci": ci, "password": password}
        errors = validate_registration(profile, as_operator=False)
        if errors:
            _show_errors(errors)
            return
        session_key = new_session_key()
        with get_db_context() as db:
            result = register_user(db, profile, as_operator=False, session_key=session_key)
        if result is None:
            st.error("An account with this email or phone already exists.")
            return
        user, _ = result
        login(user, session_key=session_key)
        go_to(dashboard_for(ROLE_USER))


def render_operator_signup():
    st.caption("Register a private hospital to receive and dispatch emergency reports.")
    with st.form("operator_signup_form"):
        hospital_name = st.text_input("Hospital name")
        admin_phone = st.text_input("Administrative phone (8 digits)")
        entity_id = st.text_input("Entity registration number")
        email = st.text_input("Contact email", key="su_op_email")
        phone = st.text_input("Operator phone (8 digits)", key="su_op_phone")
        password = st.text_input("Password", type="password", key="su_op_pass")
        use_location = st.checkbox("Use my current location for the hospital", value=True)
        submitted = st.form_submit_button("Register hospital")

    if submitted:
        profile = {
            "hospital_name": hospital_name,
            "admin_phone": admin_phone,
            "entity_id": entity_id,
            "email": email,
            "phone": phone,
            "password": password,
        }
        errors = validate_registration(profile, as_operator=True)
        if errors:
            _show_errors(errors)
            return
        if use_location:
            with st.spinner("Getting location..."):
                profile["location"] = get_current_location()
        session_key = new_session_key()
        with get_db_context() as db:
            result = register_user(db, profile, as_operator=True, session_key=session_key)
        if result is None:
            st.error("An account with this email or phone already exists.")
            return
        user, hospital = result
        login(user, hospital, session_key)
        go_to(dashboard_for(ROLE_OPERATOR))


def main():
    st.set_page_config(
        page_title="Emergency Dispatch",
        page_icon="🚑",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    configure_logging()

    init_db()
    ensure_default_users()
    init_session_state()

    user = st.session_state.get("user")
    role = st.session_state.get("role")

    cols = st.columns([4, 2])
    with cols[0]:
        st.title("Emergency Dispatch")
    with cols[1]:
        if user:
            st.info(f"Logged in as: **{user.email}** ({role})")
            if st.button("Log out"):
                logout()

    st.write("---")

    if user is None:
        hide_sidebar_completely()
        login_tab, user_tab, operator_tab = st.tabs(["Log in", "Sign up to report", "Register a hospital"])
        with login_tab:
            render_login()
        with user_tab:
            render_user_signup()
        with operator_tab:
            render_operator_signup()
        return

    st.subheader("Quick navigation")
    if st.button("Go to Dashboard", type="primary"):
        go_to(dashboard_for(role))


if __name__ == "__main__":
    main()
