from sqlalchemy import Column, String, Boolean, DateTime

from core.database import Base
from core.time_utils import now_utc

ROLE_USER = "user"
ROLE_OPERATOR = "operator"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)

    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, unique=True, index=True, nullable=False)  # 8 digits

    # National id (CI), only collected for reporting users
    ci = Column(String, nullable=True)

    role = Column(String, nullable=False, default=ROLE_USER)
    password_hash = Column(String, nullable=False)

    # Permanent ban after a fake alarm; never cleared
    is_blocked = Column(Boolean, nullable=False, default=False)
    blocked_reason = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)

    @property
    def display_name(self):
        return self.email

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
