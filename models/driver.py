from sqlalchemy import Column, String, ForeignKey

from core.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(String, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    license_number = Column(String, nullable=False)

    hospital_id = Column(String, ForeignKey("hospitals.id"), index=True, nullable=False)

    # At most one driver per ambulance (checked in fleet_service)
    ambulance_id = Column(String, ForeignKey("ambulances.id"), nullable=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Driver {self.full_name}>"
