# backend/scripts/seed_database.py
import asyncio
import logging
import random
from datetime import date
from typing import Dict, List

from sqlalchemy import text, select
from sqlalchemy.ext.asyncio import AsyncSession

# Add project root to sys.path to allow importing from app
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from app.config.constants import AllergenType
from app.config.settings import settings as app_settings
from app.db.base import Base, get_engine, get_session_factory
from app.db.crud.concept import create_concept
from app.db.models import ConceptModel, PatientModel
from app.db.session import script_db_session, set_global_session_factory
from app.routes.patient.services import set_allergies
from app.schemas.allergy import Allergen, Allergies, Allergy, AllergyReaction, Concept


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("seed_database")

# --- Configuration for Seed Data ---
NUM_PATIENTS = 40
MAX_ALLERGIES_PER_PATIENT = 3

DRUG_ALLERGENS = ["Penicillin", "Amoxicillin", "Aspirin", "Ibuprofen", "Codeine", "Sulfonamides"]
FOOD_ALLERGENS = ["Peanuts", "Shellfish", "Eggs", "Milk", "Tree nuts", "Wheat"]
ENVIRONMENT_ALLERGENS = ["Pollen", "Dust mites", "Latex", "Bee stings", "Mold"]
SEVERITIES = ["Mild", "Moderate", "Severe"]
REACTIONS = ["Hives", "Rash", "Anaphylaxis", "Wheezing", "Nausea", "Angioedema"]
FREE_TEXT_ALLERGENS = ["Hair dye", "Nickel", "Sunscreen"]

FIRST_NAMES = ["Rita", "Maya", "Ali", "Hassan", "Nadim", "Lea", "Joseph", "Sara", "Karim", "Nour"]
LAST_NAMES = ["Haddad", "Khoury", "Nassar", "Saleh", "Aoun", "Harb", "Chami", "Frem"]


async def clear_data(db: AsyncSession):
    logger.warning("Clearing existing data from tables...")
    await db.execute(text("DELETE FROM allergy_reactions;"))
    await db.execute(text("DELETE FROM allergies;"))
    await db.execute(text("DELETE FROM patients;"))
    await db.execute(text("DELETE FROM concepts;"))
    await db.commit()
    logger.info("Relevant data cleared.")


async def seed_concepts(db: AsyncSession) -> Dict[str, ConceptModel]:
    concepts: Dict[str, ConceptModel] = {}
    names = DRUG_ALLERGENS + FOOD_ALLERGENS + ENVIRONMENT_ALLERGENS + SEVERITIES + REACTIONS
    for name in names:
        existing = await db.execute(select(ConceptModel).where(ConceptModel.name == name))
        concept = existing.scalars().first()
        concepts[name] = concept or await create_concept(db, name)

    other = await db.execute(
        select(ConceptModel).where(ConceptModel.uuid == app_settings.allergen_other_non_coded_uuid)
    )
    if other.scalar_one_or_none() is None:
        await create_concept(db, "Other non-coded", uuid=app_settings.allergen_other_non_coded_uuid)
        logger.info("  Added 'Other non-coded' allergen concept")

    await db.commit()
    logger.info(f"Seeded {len(concepts)} concepts.")
    return concepts


def random_allergy(concepts: Dict[str, ConceptModel], taken: List[str]) -> Allergy:
    allergen_type, pool = random.choice([
        (AllergenType.DRUG, DRUG_ALLERGENS),
        (AllergenType.FOOD, FOOD_ALLERGENS),
        (AllergenType.ENVIRONMENT, ENVIRONMENT_ALLERGENS),
        (AllergenType.OTHER, FREE_TEXT_ALLERGENS),
    ])
    name = random.choice([n for n in pool if n not in taken] or pool)
    taken.append(name)

    if allergen_type == AllergenType.OTHER:
        allergen = Allergen(allergen_type=allergen_type, non_coded_allergen=name)
    else:
        allergen = Allergen(
            allergen_type=allergen_type,
            coded_allergen=Concept.model_validate(concepts[name]),
        )

    allergy = Allergy(
        allergen=allergen,
        severity=Concept.model_validate(concepts[random.choice(SEVERITIES)]),
        comment=random.choice([None, "Reported by patient", "Confirmed in clinic"]),
    )
    for reaction_name in random.sample(REACTIONS, k=random.randint(0, 2)):
        allergy.add_reaction(AllergyReaction(reaction=Concept.model_validate(concepts[reaction_name])))
    return allergy


async def seed_all_data(db: AsyncSession):
    concepts = await seed_concepts(db)

    logger.info(f"Seeding {NUM_PATIENTS} patients...")
    for i in range(NUM_PATIENTS):
        patient = PatientModel(
            first_name=random.choice(FIRST_NAMES),
            last_name=random.choice(LAST_NAMES),
            dob=date(random.randint(1940, 2015), random.randint(1, 12), random.randint(1, 28)),
            sex=random.choice(["M", "F"]),
        )
        db.add(patient)
        await db.commit()

        allergies = Allergies()
        taken: List[str] = []
        count = random.randint(0, MAX_ALLERGIES_PER_PATIENT)
        for _ in range(count):
            allergy = random_allergy(concepts, taken)
            if not allergies.contains_allergen(allergy):
                allergies.add(allergy)
        if not allergies and random.random() < 0.5:
            allergies.confirm_no_known_allergies()

        await set_allergies(db, patient, allergies)
        logger.info(
            f"  Patient {patient.id} ({patient.first_name} {patient.last_name}): {len(allergies)} allergies"
        )

    logger.info("Seeding complete.")


async def main(should_clear: bool, create_tables: bool):
    logger.info(f"Connecting to database at: {app_settings.database_url}")
    engine = await get_engine(app_settings.database_url)
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    set_global_session_factory(await get_session_factory(engine))

    async with script_db_session() as db:
        if should_clear:
            await clear_data(db)
        await seed_all_data(db)

    await engine.dispose()
    logger.info("Database connection closed.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Seed the database with patients, concepts and allergies."
    )
    parser.add_argument(
        "--clear", action="store_true", help="Clear existing data before seeding."
    )
    parser.add_argument(
        "--create-tables", action="store_true",
        help="Create tables from the models instead of running alembic first.",
    )
    args = parser.parse_args()
    asyncio.run(main(should_clear=args.clear, create_tables=args.create_tables))
