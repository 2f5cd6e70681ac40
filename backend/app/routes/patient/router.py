from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config.constants import AllergyStatus
from app.core.exceptions import AllergyStatusError, ConceptNotFoundError, DuplicateAllergenError
from app.core.middleware import get_db
from app.db.crud.patient import create_patient, get_patient, get_patients
from app.routes.patient.services import (
    get_allergies,
    resolve_allergy_concepts,
    save_allergy,
    set_allergies,
)
from app.schemas.allergy import Allergies, Allergy, AllergyListIn, AllergyListOut
from app.schemas.shared import PatientIn, PatientOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"])


async def _get_patient_or_404(db: AsyncSession, patient_id: int):
    patient = await get_patient(db, patient_id)
    if patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.post("/", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
async def create_patient_route(data: PatientIn, db: AsyncSession = Depends(get_db)):
    """Register a patient. Allergy status starts as Unknown."""
    fields = data.model_dump()
    if data.sex is not None:
        fields["sex"] = data.sex.value
    return await create_patient(db, **fields)


@router.get("/", response_model=List[PatientOut])
async def get_patients_route(limit: int = 100, offset: int = 0, db: AsyncSession = Depends(get_db)):
    return await get_patients(db, limit=limit, offset=offset)


@router.get("/{patient_id}", response_model=PatientOut)
async def get_patient_route(patient_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_patient_or_404(db, patient_id)


@router.get("/{patient_id}/allergies", response_model=AllergyListOut)
async def get_allergies_route(patient_id: int, db: AsyncSession = Depends(get_db)):
    """Active allergies of a patient and the aggregate allergy status"""
    patient = await _get_patient_or_404(db, patient_id)
    return AllergyListOut.from_allergies(await get_allergies(db, patient))


@router.put("/{patient_id}/allergies", response_model=AllergyListOut)
async def set_allergies_route(
    patient_id: int,
    payload: AllergyListIn,
    db: AsyncSession = Depends(get_db),
):
    """Reconcile the stored allergy list with the one sent by the client"""
    patient = await _get_patient_or_404(db, patient_id)

    allergies = Allergies()
    try:
        for allergy in payload.allergies:
            allergies.add(await resolve_allergy_concepts(db, allergy))
        if payload.status == AllergyStatus.NO_KNOWN_ALLERGIES:
            allergies.confirm_no_known_allergies()
    except DuplicateAllergenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (AllergyStatusError, ConceptNotFoundError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        await set_allergies(db, patient, allergies)
    except DuplicateAllergenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConceptNotFoundError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return AllergyListOut.from_allergies(await get_allergies(db, patient))


@router.post("/{patient_id}/allergies", response_model=Allergy, status_code=status.HTTP_201_CREATED)
async def add_allergy_route(patient_id: int, allergy: Allergy, db: AsyncSession = Depends(get_db)):
    """Add a single allergy without resending the whole list"""
    patient = await _get_patient_or_404(db, patient_id)
    if allergy.id is not None:
        raise HTTPException(status_code=422, detail="New allergies must not carry an id")
    try:
        return await save_allergy(db, patient, allergy)
    except DuplicateAllergenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConceptNotFoundError as e:
        raise HTTPException(status_code=422, detail=str(e))
