from sqlalchemy import Column, String, Float, ForeignKey

from core.database import Base

HOSPITAL_TYPE_PRIVATE = "private"


class Hospital(Base):
    __tablename__ = "hospitals"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    type = Column(String, nullable=False, default=HOSPITAL_TYPE_PRIVATE)
    admin_phone = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)  # registration number of the entity
    email = Column(String, nullable=False)

    # Owning operator account (1:1)
    operator_id = Column(String, ForeignKey("users.id"), unique=True, index=True, nullable=False)

    @property
    def location(self):
        return {"latitude": self.latitude, "longitude": self.longitude}

    def __repr__(self):
        return f"<Hospital {self.name}>"
