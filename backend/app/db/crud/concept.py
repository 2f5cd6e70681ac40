# app/db/crud/concept.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ConceptModel

logger = logging.getLogger(__name__)


async def get_concept(db: AsyncSession, concept_id: int) -> Optional[ConceptModel]:
    return await db.get(ConceptModel, concept_id)


async def get_concept_by_uuid(db: AsyncSession, uuid: str) -> Optional[ConceptModel]:
    result = await db.execute(select(ConceptModel).where(ConceptModel.uuid == uuid))
    concept = result.scalar_one_or_none()
    if concept is None:
        logger.debug(f"CRUD: no concept with uuid '{uuid}'")
    return concept


async def create_concept(db: AsyncSession, name: str, uuid: Optional[str] = None,
                         concept_id: Optional[int] = None) -> ConceptModel:
    """Add a concept to the session; the caller commits."""
    concept = ConceptModel(id=concept_id, name=name)
    if uuid:
        concept.uuid = uuid
    db.add(concept)
    await db.flush()
    return concept
