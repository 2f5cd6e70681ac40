from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import VoidReason
from app.core.middleware import get_db
from app.routes.patient.services import get_allergy_by_uuid, void_allergy
from app.schemas.allergy import Allergy

router = APIRouter(prefix="/allergies", tags=["allergies"])


@router.get("/{uuid}", response_model=Allergy)
async def get_allergy_route(uuid: str, db: AsyncSession = Depends(get_db)):
    allergy = await get_allergy_by_uuid(db, uuid)
    if allergy is None:
        raise HTTPException(status_code=404, detail="Allergy not found")
    return allergy


@router.delete("/{uuid}", response_model=Allergy)
async def void_allergy_route(
    uuid: str,
    reason: str = Query(VoidReason.REMOVED.value, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    """Void one allergy; the record is kept for audit"""
    allergy = await void_allergy(db, uuid, reason)
    if allergy is None:
        raise HTTPException(status_code=404, detail="Allergy not found")
    return allergy
