from sqlalchemy import Column, String, ForeignKey

from core.database import Base

STATUS_AVAILABLE = "available"
STATUS_IN_USE = "in-use"
AMBULANCE_STATUSES = (STATUS_AVAILABLE, STATUS_IN_USE)


class Ambulance(Base):
    __tablename__ = "ambulances"

    id = Column(String, primary_key=True, index=True)
    plate_number = Column(String, nullable=False)

    # Single source of truth for dispatch eligibility
    status = Column(String, nullable=False, default=STATUS_AVAILABLE)

    hospital_id = Column(String, ForeignKey("hospitals.id"), index=True, nullable=False)

    @property
    def is_available(self):
        return self.status == STATUS_AVAILABLE

    def __repr__(self):
        return f"<Ambulance {self.plate_number} ({self.status})>"
