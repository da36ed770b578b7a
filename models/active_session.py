from sqlalchemy import Column, String, DateTime

from core.database import Base
from core.time_utils import now_utc


class ActiveSession(Base):
    """Persisted "who is logged in" record for one browser client.

    Keyed by an opaque client token the UI keeps in the page URL.
    """

    __tablename__ = "active_sessions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    hospital_id = Column(String, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
