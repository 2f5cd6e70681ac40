# app/db/models/patient.py
from uuid import uuid4

from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base
from app.config.constants import AllergyStatus

class PatientModel(Base):
    __tablename__ = "patients"

    id         = Column(Integer, primary_key=True)
    uuid       = Column(String(38), unique=True, nullable=False,
                        default=lambda: str(uuid4()))

    first_name = Column(String(50), nullable=False)
    last_name  = Column(String(50), nullable=False)
    dob        = Column(Date)
    sex        = Column(String(1))
    # Unknown / No known allergies / See list
    allergy_status = Column(String(50), nullable=False,
                            default=AllergyStatus.UNKNOWN.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    allergies = relationship("AllergyModel", back_populates="patient",
                             order_by="AllergyModel.id")

    def __repr__(self):
        return f"<Patient {self.id}: {self.first_name} {self.last_name}>"
