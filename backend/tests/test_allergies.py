# tests/test_allergies.py
import pytest
from pydantic import ValidationError

from app.config.constants import AllergenType, AllergyStatus
from app.config.settings import settings
from app.core.exceptions import AllergyStatusError, DuplicateAllergenError
from app.schemas.allergy import Allergen, Allergies, Allergy, AllergyReaction, Concept

OTHER_NON_CODED = Concept(id=5622, uuid=settings.allergen_other_non_coded_uuid)


def coded(concept_id, allergy_id=None, uuid=None, **kwargs):
    return Allergy(
        id=allergy_id,
        uuid=uuid,
        allergen=Allergen(allergen_type=AllergenType.DRUG, coded_allergen=Concept(id=concept_id)),
        **kwargs,
    )


def non_coded(text):
    return Allergy(
        allergen=Allergen(
            allergen_type=AllergenType.OTHER,
            coded_allergen=OTHER_NON_CODED,
            non_coded_allergen=text,
        )
    )


def test_new_list_is_unknown_and_empty():
    allergies = Allergies()
    assert allergies.status == AllergyStatus.UNKNOWN
    assert len(allergies) == 0


def test_add_sets_see_list():
    allergies = Allergies()
    allergies.add(coded(3))
    assert allergies.status == AllergyStatus.SEE_LIST
    assert len(allergies) == 1


def test_add_rejects_same_coded_allergen():
    allergies = Allergies()
    allergies.add(coded(3))
    with pytest.raises(DuplicateAllergenError):
        allergies.add(coded(3))
    assert len(allergies) == 1


def test_add_rejects_same_non_coded_allergen_ignoring_case():
    allergies = Allergies()
    allergies.add(non_coded("Hair dye"))
    with pytest.raises(DuplicateAllergenError):
        allergies.add(non_coded("  hair DYE "))
    allergies.add(non_coded("Nickel"))
    assert len(allergies) == 2


def test_removing_last_allergy_falls_back_to_unknown():
    allergy = coded(3)
    allergies = Allergies()
    allergies.add(allergy)
    allergies.add(coded(5))

    allergies.remove(allergy)
    assert allergies.status == AllergyStatus.SEE_LIST
    allergies.pop()
    assert allergies.status == AllergyStatus.UNKNOWN


def test_remove_unknown_allergy_raises():
    allergies = Allergies([coded(3, allergy_id=1, uuid="a")])
    with pytest.raises(ValueError):
        allergies.remove(coded(3, allergy_id=1, uuid="b"))


def test_clear_resets_status():
    allergies = Allergies([coded(3)])
    allergies.clear()
    assert allergies.status == AllergyStatus.UNKNOWN


def test_confirm_no_known_allergies():
    allergies = Allergies()
    allergies.confirm_no_known_allergies()
    assert allergies.status == AllergyStatus.NO_KNOWN_ALLERGIES

    allergies.add(coded(3))
    assert allergies.status == AllergyStatus.SEE_LIST


def test_confirm_no_known_allergies_rejects_non_empty_list():
    allergies = Allergies([coded(3)])
    with pytest.raises(AllergyStatusError):
        allergies.confirm_no_known_allergies()
    assert allergies.status == AllergyStatus.SEE_LIST


def test_loaded_list_with_allergies_is_see_list_regardless_of_stored_status():
    allergies = Allergies([coded(3)], status=AllergyStatus.UNKNOWN)
    assert allergies.status == AllergyStatus.SEE_LIST


def test_membership_is_by_uuid():
    allergies = Allergies([coded(3, allergy_id=1, uuid="abc")])
    assert coded(3, allergy_id=1, uuid="abc") in allergies
    assert coded(3, allergy_id=1, uuid="xyz") not in allergies
    assert allergies.get_allergy(1).uuid == "abc"
    assert allergies.get_allergy(2) is None
    assert allergies.get_allergy(None) is None


def test_is_coded():
    assert Allergen(allergen_type=AllergenType.DRUG, coded_allergen=Concept(id=3)).is_coded()
    assert not non_coded("Hair dye").allergen.is_coded()
    assert not Allergen(allergen_type=AllergenType.DRUG, non_coded_allergen="Hair dye").is_coded()


def test_allergen_needs_concept_or_text():
    with pytest.raises(ValidationError):
        Allergen(allergen_type=AllergenType.FOOD)
    with pytest.raises(ValidationError):
        Allergen(allergen_type=AllergenType.FOOD, non_coded_allergen="   ")


def test_add_reaction_skips_duplicates():
    allergy = coded(3, allergy_id=9)
    assert allergy.add_reaction(AllergyReaction(reaction=Concept(id=11)))
    assert not allergy.add_reaction(AllergyReaction(reaction=Concept(id=11)))
    assert allergy.add_reaction(AllergyReaction(reaction=Concept(id=11), reaction_non_coded="mild"))
    assert len(allergy.reactions) == 2
    assert all(r.allergy_id == 9 for r in allergy.reactions)


def test_has_same_values():
    def stored():
        allergy = coded(3, allergy_id=1, uuid="abc", severity=Concept(id=4), comment="note")
        allergy.reactions.append(AllergyReaction(id=1, reaction=Concept(id=11)))
        return allergy

    assert stored().has_same_values(stored())

    other = stored()
    other.comment = "changed"
    assert not stored().has_same_values(other)

    other = stored()
    other.severity = None
    assert not stored().has_same_values(other)

    other = stored()
    other.reactions[0].reaction_non_coded = "text"
    assert not stored().has_same_values(other)

    # a reaction without identity is always a change
    other = stored()
    other.reactions[0].id = None
    assert not stored().has_same_values(other)


def test_concept_identity_falls_back_to_uuid():
    a = coded(3, allergy_id=1)
    b = coded(3, allergy_id=1)
    a.allergen.coded_allergen = Concept(uuid="u-1")
    b.allergen.coded_allergen = Concept(id=3, uuid="u-1")
    assert a.has_same_values(b)
