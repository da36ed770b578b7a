from .database import get_db_context, init_db, configure_engine, SessionLocal, Base
from .auth import hash_password, verify_password

# Streamlit-dependent helpers (helpers, session_manager) are imported
# directly by pages so services stay importable without a UI runtime.

__all__ = [
    "get_db_context",
    "init_db",
    "configure_engine",
    "SessionLocal",
    "Base",
    "hash_password",
    "verify_password",
]
