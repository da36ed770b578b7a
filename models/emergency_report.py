# models/emergency_report.py

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON
from sqlalchemy import Text

from core.database import Base
from core.time_utils import now_utc

STATUS_PENDING = "Pending"
STATUS_DISPATCHED = "Dispatched"
STATUS_FALSE_ALARM = "False Alarm"
# Declared for completeness; nothing transitions a report into it yet
STATUS_ATTENDED = "Attended"
REPORT_STATUSES = (STATUS_PENDING, STATUS_DISPATCHED, STATUS_FALSE_ALARM, STATUS_ATTENDED)


class EmergencyReport(Base):
    __tablename__ = "emergency_reports"

    id = Column(String, primary_key=True, index=True)

    # Reporter snapshot (weak reference to users.id)
    user_id = Column(String, index=True, nullable=False)
    user_phone = Column(String, nullable=False)
    user_name = Column(String, nullable=False)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=now_utc, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    description = Column(Text, nullable=True)
    accident_type = Column(String, nullable=False)
    injured_count = Column(Integer, nullable=False, default=1)

    # {"conscious": "Yes", "breathing": "Yes", "movement": "Yes", "bleeding": "No"}
    triage_answers = Column(JSON, nullable=False)

    image_path = Column(String, nullable=True)

    # AI analysis block
    ai_image_description = Column(Text, nullable=True)
    ai_triage_level = Column(String, nullable=False)
    ai_justification = Column(Text, nullable=True)
    ai_is_fake_alarm = Column(Boolean, nullable=False, default=False)
    ai_confidence = Column(Integer, nullable=True)
    ai_degraded = Column(Boolean, nullable=False, default=False)

    # Lifecycle
    status = Column(String, nullable=False, default=STATUS_PENDING, index=True)
    assigned_ambulance_id = Column(String, nullable=True)
    dispatch_time = Column(DateTime(timezone=True), nullable=True)
    hospital_id = Column(String, nullable=True, index=True)

    @property
    def location(self):
        return {"latitude": self.latitude, "longitude": self.longitude}

    def __repr__(self):
        return f"<EmergencyReport {self.id} ({self.status})>"
