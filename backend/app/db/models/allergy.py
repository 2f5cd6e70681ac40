# app/db/models/allergy.py
from uuid import uuid4

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base

class AllergyModel(Base):
    __tablename__ = "allergies"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(38), unique=True, nullable=False, index=True,
                  default=lambda: str(uuid4()))
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    allergen_type = Column(String(50), nullable=False)  # DRUG, FOOD, ENVIRONMENT, OTHER
    coded_allergen_id = Column(Integer, ForeignKey("concepts.id"), nullable=True)
    non_coded_allergen = Column(String(255))
    severity_id = Column(Integer, ForeignKey("concepts.id"), nullable=True)
    comment = Column(Text)

    # rows are voided, never deleted
    voided = Column(Boolean, nullable=False, default=False)
    date_voided = Column(DateTime(timezone=True))
    void_reason = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    patient = relationship("PatientModel", back_populates="allergies")
    coded_allergen = relationship("ConceptModel", foreign_keys=[coded_allergen_id], lazy="selectin")
    severity = relationship("ConceptModel", foreign_keys=[severity_id], lazy="selectin")
    reactions = relationship(
        "AllergyReactionModel",
        back_populates="allergy",
        cascade="all, delete-orphan",
        order_by="AllergyReactionModel.id",
        lazy="selectin",
    )


class AllergyReactionModel(Base):
    __tablename__ = "allergy_reactions"

    id = Column(Integer, primary_key=True)
    uuid = Column(String(38), unique=True, nullable=False,
                  default=lambda: str(uuid4()))
    allergy_id = Column(Integer, ForeignKey("allergies.id", ondelete="CASCADE"), nullable=False)
    reaction_id = Column(Integer, ForeignKey("concepts.id"), nullable=True)
    reaction_non_coded = Column(String(255))

    allergy = relationship("AllergyModel", back_populates="reactions")
    reaction = relationship("ConceptModel", lazy="selectin")
