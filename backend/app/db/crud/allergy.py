import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import AllergyModel

logger = logging.getLogger(__name__)


async def get_allergies_for_patient(
    db: AsyncSession, patient_id: int, include_voided: bool = False
) -> List[AllergyModel]:
    """
    Retrieves the recorded allergies for a specific patient

    Args:
        db (AsyncSession): the database session
        patient_id (int): the id of the patient
        include_voided (bool, optional): also return voided allergies

    Returns:
        List[AllergyModel]: allergies ordered by id, reactions and concepts loaded
    """

    logger.debug(f"CRUD: fetching allergies for patient_id '{patient_id}'")

    stmt = select(AllergyModel).where(AllergyModel.patient_id == patient_id)
    if not include_voided:
        stmt = stmt.where(AllergyModel.voided.is_(False))
    stmt = stmt.order_by(AllergyModel.id).execution_options(populate_existing=True)

    result = await db.execute(stmt)
    allergies = result.scalars().all()

    logger.info(f"CRUD: found {len(allergies)} allergies for patient_id '{patient_id}'")
    return allergies


async def get_allergy(db: AsyncSession, allergy_id: int) -> Optional[AllergyModel]:
    return await db.get(AllergyModel, allergy_id, populate_existing=True)


async def get_allergy_by_uuid(db: AsyncSession, uuid: str) -> Optional[AllergyModel]:
    stmt = (
        select(AllergyModel)
        .where(AllergyModel.uuid == uuid)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def mark_allergy_voided(allergy: AllergyModel, reason: str) -> AllergyModel:
    """Mark an allergy voided in the session; the caller commits."""
    allergy.voided = True
    allergy.date_voided = datetime.now(timezone.utc)
    allergy.void_reason = reason
    logger.debug(f"CRUD: voided allergy id '{allergy.id}' ({reason})")
    return allergy
