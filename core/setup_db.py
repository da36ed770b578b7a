# core/setup_db.py

from core.database import init_db, engine
from services.user_service import ensure_default_users


def main():
    print(f"Creating database tables on {engine.url}...")

    # Create all SQLAlchemy tables
    init_db()

    # Insert demo operator, hospital, ambulances and reporting user
    ensure_default_users()

    print("Database initialized successfully.")


if __name__ == "__main__":
    main()
