import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import PatientModel

logger = logging.getLogger(__name__)


async def get_patient(db: AsyncSession, patient_id: int) -> Optional[PatientModel]:
    """
    Retrieves a patient by primary key

    Args:
        db (AsyncSession): the database session
        patient_id (int): the patient id

    Returns:
        Optional[PatientModel]: the patient, or None when no such patient exists
    """
    patient = await db.get(PatientModel, patient_id)
    if patient is None:
        logger.info(f"CRUD: no patient with id '{patient_id}'")
    return patient


async def get_patients(db: AsyncSession, limit: int = 100, offset: int = 0) -> List[PatientModel]:
    stmt = (
        select(PatientModel)
        .order_by(PatientModel.last_name, PatientModel.first_name)
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def create_patient(db: AsyncSession, **fields) -> PatientModel:
    """Insert a patient and commit. New patients start with allergy status Unknown."""
    patient = PatientModel(**fields)
    db.add(patient)
    await db.commit()
    await db.refresh(patient)
    logger.info(f"CRUD: created patient id '{patient.id}'")
    return patient
