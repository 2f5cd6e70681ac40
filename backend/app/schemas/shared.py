# app/schemas/shared.py
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.config.constants import AllergyStatus

class Sex(str, Enum):
    m = "M"
    f = "F"

class PatientIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    dob: Optional[date] = None
    sex: Optional[Sex] = None

class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    first_name: str
    last_name: str
    dob: Optional[date] = None
    sex: Optional[Sex] = None
    allergy_status: AllergyStatus
    created_at: Optional[datetime] = None
