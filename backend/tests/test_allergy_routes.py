# tests/test_allergy_routes.py
import httpx
import pytest
import pytest_asyncio

from app.main import app
from tests.conftest import ALLERGY_1_UUID


@pytest_asyncio.fixture
async def client(db, session_factory):
    # the lifespan hook is skipped by ASGITransport, wire the test database in directly
    app.state.session_factory = session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_get_allergies(client):
    response = await client.get("/patients/2/allergies")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "See list"
    assert [a["id"] for a in body["allergies"]] == [1, 2, 3, 4]
    assert body["allergies"][0]["allergen"]["allergen_type"] == "DRUG"
    assert body["allergies"][0]["allergen"]["coded_allergen"]["name"] == "Aspirin"


@pytest.mark.asyncio
async def test_get_allergies_for_unknown_patient(client):
    response = await client.get("/patients/404/allergies")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_put_allergies_reconciles_list(client):
    body = (await client.get("/patients/2/allergies")).json()
    allergies = body["allergies"][1:]
    allergies[0]["comment"] = "edited comment"
    allergies.append({
        "allergen": {"allergen_type": "FOOD", "non_coded_allergen": "Sesame"},
    })

    response = await client.put("/patients/2/allergies", json={"allergies": allergies})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "See list"
    assert len(body["allergies"]) == 4
    ids = [a["id"] for a in body["allergies"]]
    assert 1 not in ids and 2 not in ids
    assert 3 in ids and 4 in ids

    sesame = next(a for a in body["allergies"] if a["allergen"]["non_coded_allergen"] == "Sesame")
    assert sesame["allergen"]["coded_allergen"]["name"] == "Other non-coded"

    removed = (await client.get(f"/allergies/{ALLERGY_1_UUID}")).json()
    assert removed["voided"] is True


@pytest.mark.asyncio
async def test_put_no_known_allergies(client):
    response = await client.put(
        "/patients/7/allergies", json={"status": "No known allergies", "allergies": []}
    )
    assert response.status_code == 200
    assert response.json() == {"status": "No known allergies", "allergies": []}


@pytest.mark.asyncio
async def test_put_no_known_allergies_with_allergies_is_rejected(client):
    allergies = (await client.get("/patients/2/allergies")).json()["allergies"]
    response = await client.put(
        "/patients/2/allergies", json={"status": "No known allergies", "allergies": allergies}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_put_duplicate_allergen_is_rejected(client):
    allergy = {"allergen": {"allergen_type": "DRUG", "coded_allergen": {"id": 3}}}
    response = await client.put("/patients/7/allergies", json={"allergies": [allergy, allergy]})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_put_unknown_concept_is_rejected(client):
    allergy = {"allergen": {"allergen_type": "DRUG", "coded_allergen": {"id": 999}}}
    response = await client.put("/patients/7/allergies", json={"allergies": [allergy]})
    assert response.status_code == 422

    body = (await client.get("/patients/7/allergies")).json()
    assert body == {"status": "Unknown", "allergies": []}


@pytest.mark.asyncio
async def test_post_and_delete_single_allergy(client):
    response = await client.post(
        "/patients/6/allergies",
        json={"allergen": {"allergen_type": "FOOD", "coded_allergen": {"id": 5}}, "comment": "hives after peanuts"},
    )
    assert response.status_code == 201
    created = response.json()
    assert created["patient_id"] == 6

    response = await client.delete(f"/allergies/{created['uuid']}", params={"reason": "Entered in error"})
    assert response.status_code == 200
    assert response.json()["voided"] is True

    body = (await client.get("/patients/6/allergies")).json()
    assert body == {"status": "Unknown", "allergies": []}


@pytest.mark.asyncio
async def test_get_unknown_allergy(client):
    response = await client.get("/allergies/no-such-uuid")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_patient(client):
    response = await client.post("/patients/", json={"first_name": "Lea", "last_name": "Harb", "sex": "F"})
    assert response.status_code == 201
    patient = response.json()
    assert patient["allergy_status"] == "Unknown"

    response = await client.get(f"/patients/{patient['id']}")
    assert response.status_code == 200
    assert response.json()["first_name"] == "Lea"


@pytest.mark.asyncio
async def test_list_patients(client):
    response = await client.get("/patients/", params={"limit": 2})
    assert response.status_code == 200
    patients = response.json()
    assert len(patients) == 2
    # ordered by last name
    assert patients[0]["last_name"] == "Chebaskwony"


@pytest.mark.asyncio
async def test_put_free_text_allergens_referencing_other_concept_by_id(client):
    allergies = [
        {"allergen": {"allergen_type": "OTHER", "coded_allergen": {"id": 5622}, "non_coded_allergen": text}}
        for text in ("Hair dye", "Nickel")
    ]
    response = await client.put("/patients/7/allergies", json={"allergies": allergies})
    assert response.status_code == 200
    body = response.json()
    assert sorted(a["allergen"]["non_coded_allergen"] for a in body["allergies"]) == ["Hair dye", "Nickel"]


@pytest.mark.asyncio
async def test_put_edit_duplicating_another_allergen_is_rejected(client):
    body = (await client.get("/patients/2/allergies")).json()
    body["allergies"][0]["allergen"]["coded_allergen"] = {"id": 5}

    response = await client.put("/patients/2/allergies", json={"allergies": body["allergies"]})
    assert response.status_code == 409

    body = (await client.get("/patients/2/allergies")).json()
    assert [a["id"] for a in body["allergies"]] == [1, 2, 3, 4]
