# tests/conftest.py
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.config.settings import settings
from app.db.base import Base, get_session_factory
from app.db.models import AllergyModel, AllergyReactionModel, ConceptModel, PatientModel

TEST_DATABASE_URL = "sqlite+aiosqlite://"

ALLERGY_1_UUID = "21543629-7d8c-11e1-909d-c80aa9edcf4e"
VOIDED_ALLERGY_UUID = "9e3a7c52-7d8c-11e1-909d-c80aa9edcf4e"

CONCEPTS = {
    3: "Aspirin",
    4: "Severe",
    5: "Peanuts",
    6: "Pollen",
    7: "Codeine",
    8: "Mild",
    11: "Hives",
    12: "Rash",
    21: "Wheezing",
    22: "Nausea",
    24: "Latex",
}


async def load_allergy_dataset(db):
    """
    Patient 2 has four active allergies (1 and 2 with two reactions each,
    3 and 4 with none) plus one voided allergy. Patients 6 and 7 have none.
    """
    db.add_all([ConceptModel(id=cid, name=name) for cid, name in CONCEPTS.items()])
    db.add(ConceptModel(id=5622, uuid=settings.allergen_other_non_coded_uuid, name="Other non-coded"))

    db.add_all([
        PatientModel(id=2, first_name="John", last_name="Doe", allergy_status="See list"),
        PatientModel(id=6, first_name="Johnny", last_name="Test", allergy_status="Unknown"),
        PatientModel(id=7, first_name="Collet", last_name="Chebaskwony", allergy_status="Unknown"),
    ])

    db.add_all([
        AllergyModel(id=1, uuid=ALLERGY_1_UUID, patient_id=2, allergen_type="DRUG",
                     coded_allergen_id=3, severity_id=4, comment="some comment", voided=False),
        AllergyModel(id=2, patient_id=2, allergen_type="FOOD",
                     coded_allergen_id=5, severity_id=8, voided=False),
        AllergyModel(id=3, patient_id=2, allergen_type="ENVIRONMENT",
                     coded_allergen_id=6, voided=False),
        AllergyModel(id=4, patient_id=2, allergen_type="DRUG",
                     coded_allergen_id=7, severity_id=8, voided=False),
        AllergyModel(id=5, uuid=VOIDED_ALLERGY_UUID, patient_id=2, allergen_type="FOOD",
                     coded_allergen_id=24, voided=True, void_reason="Entered in error"),
    ])
    db.add_all([
        AllergyReactionModel(id=1, allergy_id=1, reaction_id=11),
        AllergyReactionModel(id=2, allergy_id=1, reaction_id=21),
        AllergyReactionModel(id=3, allergy_id=2, reaction_id=12),
        AllergyReactionModel(id=4, allergy_id=2, reaction_id=22, reaction_non_coded="itchy throat"),
    ])
    await db.commit()
    # start every test from a clean identity map
    db.expunge_all()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return await get_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        await load_allergy_dataset(session)
        yield session
