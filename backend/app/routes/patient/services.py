# app/routes/patient/services.py
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import AllergenType, AllergyStatus, VoidReason
from app.config.settings import settings
from app.core.exceptions import ConceptNotFoundError, DuplicateAllergenError
from app.db.crud.allergy import (
    get_allergies_for_patient,
    get_allergy as get_allergy_model,
    get_allergy_by_uuid as get_allergy_model_by_uuid,
    mark_allergy_voided,
)
from app.db.crud.concept import get_concept, get_concept_by_uuid
from app.db.models import AllergyModel, AllergyReactionModel, ConceptModel, PatientModel
from app.schemas.allergy import (
    Allergen,
    Allergies,
    Allergy,
    AllergyReaction,
    Concept,
)

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------
# ORM -> domain values
# --------------------------------------------------------------------------
def _concept_from_model(concept: Optional[ConceptModel]) -> Optional[Concept]:
    if concept is None:
        return None
    return Concept.model_validate(concept)


def allergy_from_model(model: AllergyModel) -> Allergy:
    """Detached copy of a stored allergy; editing it never touches the session."""
    return Allergy(
        id=model.id,
        uuid=model.uuid,
        patient_id=model.patient_id,
        allergen=Allergen(
            allergen_type=AllergenType(model.allergen_type),
            coded_allergen=_concept_from_model(model.coded_allergen),
            non_coded_allergen=model.non_coded_allergen,
        ),
        severity=_concept_from_model(model.severity),
        comment=model.comment,
        voided=bool(model.voided),
        reactions=[
            AllergyReaction(
                id=reaction.id,
                uuid=reaction.uuid,
                allergy_id=reaction.allergy_id,
                reaction=_concept_from_model(reaction.reaction),
                reaction_non_coded=reaction.reaction_non_coded,
            )
            for reaction in model.reactions
        ],
    )


# --------------------------------------------------------------------------
# helpers for inserts
# --------------------------------------------------------------------------
async def _resolve_concept(db: AsyncSession, concept: Optional[Concept]) -> Optional[ConceptModel]:
    if concept is None:
        return None
    if concept.id is not None:
        found = await get_concept(db, concept.id)
    elif concept.uuid:
        found = await get_concept_by_uuid(db, concept.uuid)
    else:
        found = None
    if found is None:
        raise ConceptNotFoundError(concept.id or concept.uuid or concept.name)
    return found


async def resolve_allergy_concepts(db: AsyncSession, allergy: Allergy) -> Allergy:
    """
    Copy of `allergy` whose concepts are replaced by the stored ones.

    Clients may reference a concept by id or by uuid only; allergen
    comparisons and is_coded() need both, so lists are resolved before
    they are checked for duplicates.

    Raises:
        ConceptNotFoundError: a referenced concept does not exist
    """
    resolved = allergy.model_copy(deep=True)
    resolved.allergen.coded_allergen = _concept_from_model(
        await _resolve_concept(db, resolved.allergen.coded_allergen)
    )
    resolved.severity = _concept_from_model(await _resolve_concept(db, resolved.severity))
    for reaction in resolved.reactions:
        reaction.reaction = _concept_from_model(await _resolve_concept(db, reaction.reaction))
    return resolved


async def _attach_other_non_coded(db: AsyncSession, allergen: Allergen) -> None:
    """Give a free-text allergen the configured 'other non-coded' concept."""
    if allergen.coded_allergen is not None or not (allergen.non_coded_allergen or "").strip():
        return
    concept = await get_concept_by_uuid(db, settings.allergen_other_non_coded_uuid)
    if concept is None:
        logger.error(
            f"Other non-coded allergen concept '{settings.allergen_other_non_coded_uuid}' is not in the database"
        )
        raise ConceptNotFoundError(settings.allergen_other_non_coded_uuid)
    allergen.coded_allergen = _concept_from_model(concept)


async def _prepare_allergy(db: AsyncSession, patient_id: int, allergy: Allergy) -> Allergy:
    prepared = await resolve_allergy_concepts(db, allergy)
    if prepared.patient_id is None:
        prepared.patient_id = patient_id
    await _attach_other_non_coded(db, prepared.allergen)
    return prepared


def _check_duplicate_allergens(allergies: List[Allergy]) -> None:
    for index, allergy in enumerate(allergies):
        for other in allergies[index + 1:]:
            if allergy.allergen.is_same_allergen(other.allergen):
                raise DuplicateAllergenError(other.allergen)


async def _insert_allergy(db: AsyncSession, patient_id: int, allergy: Allergy) -> AllergyModel:
    reactions = []
    for reaction in allergy.reactions:
        reactions.append(
            AllergyReactionModel(
                reaction=await _resolve_concept(db, reaction.reaction),
                reaction_non_coded=reaction.reaction_non_coded,
            )
        )

    model = AllergyModel(
        patient_id=patient_id,
        allergen_type=allergy.allergen.allergen_type.value,
        coded_allergen=await _resolve_concept(db, allergy.allergen.coded_allergen),
        non_coded_allergen=allergy.allergen.non_coded_allergen,
        severity=await _resolve_concept(db, allergy.severity),
        comment=allergy.comment,
        voided=False,
        reactions=reactions,
    )
    db.add(model)
    return model


# --------------------------------------------------------------------------
# public operations
# --------------------------------------------------------------------------
async def get_allergies(db: AsyncSession, patient: PatientModel) -> Allergies:
    """
    Load a patient's active allergy list and its status.

    A non-empty list always reads as SEE_LIST; an empty one reports the
    status stored on the patient, except that a stale SEE_LIST reads as
    UNKNOWN.
    """
    models = await get_allergies_for_patient(db, patient.id)
    allergies = [allergy_from_model(m) for m in models]

    status = AllergyStatus(patient.allergy_status or AllergyStatus.UNKNOWN.value)
    if not allergies and status == AllergyStatus.SEE_LIST:
        status = AllergyStatus.UNKNOWN
    return Allergies(allergies, status=status)


async def set_allergies(db: AsyncSession, patient: PatientModel, allergies: Allergies) -> None:
    """
    Replace the stored allergy list of `patient` with `allergies`.

    Stored allergies missing from `allergies` are voided. Allergies that
    still carry a stored id but differ in any field (allergen, severity,
    comment or reactions) are voided and recreated with a new identity.
    Allergies without an id are inserted. Nothing is updated in place.
    The patient's status becomes SEE_LIST for a non-empty list,
    NO_KNOWN_ALLERGIES if the caller confirmed it, and UNKNOWN otherwise.
    All changes are committed in one transaction.

    The caller's allergies are only updated once the commit succeeded:
    they get the patient id, and free-text allergens get the 'other
    non-coded' concept.

    Raises:
        DuplicateAllergenError: two allergies in the list share an allergen
        ConceptNotFoundError: a referenced concept does not exist
    """
    patient_id = patient.id
    voided = created = 0

    try:
        desired = [await _prepare_allergy(db, patient_id, a) for a in allergies]
        _check_duplicate_allergens(desired)

        stored = {m.id: m for m in await get_allergies_for_patient(db, patient_id)}
        desired_ids = {a.id for a in desired if a.id is not None}
        for allergy_id, model in stored.items():
            if allergy_id not in desired_ids:
                mark_allergy_voided(model, VoidReason.REMOVED.value)
                voided += 1

        for allergy in desired:
            if allergy.id is not None and allergy.id in stored:
                original = stored[allergy.id]
                if allergy_from_model(original).has_same_values(allergy):
                    continue
                logger.debug(f"Allergy id '{allergy.id}' was edited, voiding and recreating it")
                mark_allergy_voided(original, VoidReason.EDITED.value)
                voided += 1
            elif allergy.id is not None:
                logger.warning(
                    f"Allergy id '{allergy.id}' is not an active allergy of patient '{patient_id}', saving it as new"
                )

            await _insert_allergy(db, patient_id, allergy)
            created += 1

        if desired:
            status = AllergyStatus.SEE_LIST
        elif allergies.status == AllergyStatus.NO_KNOWN_ALLERGIES:
            status = AllergyStatus.NO_KNOWN_ALLERGIES
        else:
            status = AllergyStatus.UNKNOWN
        patient.allergy_status = status.value

        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Error saving allergies for patient '{patient_id}': {type(e).__name__} - {e}",
            exc_info=True,
        )
        raise

    for allergy, saved in zip(allergies, desired):
        allergy.patient_id = saved.patient_id
        if allergy.allergen.coded_allergen is None:
            allergy.allergen.coded_allergen = saved.allergen.coded_allergen

    logger.info(
        f"Saved allergies for patient '{patient_id}': {voided} voided, {created} created, status '{status.value}'"
    )


async def get_allergy(db: AsyncSession, allergy_id: int) -> Optional[Allergy]:
    model = await get_allergy_model(db, allergy_id)
    return allergy_from_model(model) if model else None


async def get_allergy_by_uuid(db: AsyncSession, uuid: str) -> Optional[Allergy]:
    """Look up an allergy by uuid, voided ones included. Returns None if absent."""
    model = await get_allergy_model_by_uuid(db, uuid)
    return allergy_from_model(model) if model else None


async def save_allergy(db: AsyncSession, patient: PatientModel, allergy: Allergy) -> Allergy:
    """Add one new allergy to a patient's list. The caller's allergy is left as is."""
    patient_id = patient.id
    current = await get_allergies(db, patient)
    prepared = await _prepare_allergy(db, patient_id, allergy)
    prepared.patient_id = patient_id
    if current.contains_allergen(prepared):
        raise DuplicateAllergenError(prepared.allergen)

    try:
        model = await _insert_allergy(db, patient_id, prepared)
        patient.allergy_status = AllergyStatus.SEE_LIST.value
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Error saving allergy for patient '{patient_id}': {type(e).__name__} - {e}",
            exc_info=True,
        )
        raise

    logger.info(f"Saved allergy id '{model.id}' for patient '{patient_id}'")
    return allergy_from_model(model)


async def void_allergy(db: AsyncSession, uuid: str, reason: str) -> Optional[Allergy]:
    """
    Void a single allergy. When it was the patient's last active allergy the
    status falls back to UNKNOWN. Returns None if there is no such allergy.
    """
    model = await get_allergy_model_by_uuid(db, uuid)
    if model is None:
        return None
    if model.voided:
        return allergy_from_model(model)

    try:
        mark_allergy_voided(model, reason)
        await db.flush()
        remaining = await get_allergies_for_patient(db, model.patient_id)
        if not remaining:
            patient = await db.get(PatientModel, model.patient_id)
            patient.allergy_status = AllergyStatus.UNKNOWN.value
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Error voiding allergy '{uuid}': {type(e).__name__} - {e}",
            exc_info=True,
        )
        raise

    logger.info(f"Voided allergy '{uuid}' ({reason})")
    return allergy_from_model(model)
