# app/schemas/allergy.py
from __future__ import annotations

from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.config.constants import AllergenType, AllergyStatus
from app.config.settings import settings
from app.core.exceptions import AllergyStatusError, DuplicateAllergenError


def same_concept(a: Optional["Concept"], b: Optional["Concept"]) -> bool:
    """Concepts match on id, falling back to uuid when either id is unset."""
    if a is None or b is None:
        return a is None and b is None
    if a.id is not None and b.id is not None:
        return a.id == b.id
    return a.uuid is not None and a.uuid == b.uuid


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip().lower() == (b or "").strip().lower()


class Concept(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    uuid: Optional[str] = None
    name: Optional[str] = None


class Allergen(BaseModel):
    allergen_type: AllergenType
    coded_allergen: Optional[Concept] = None
    non_coded_allergen: Optional[str] = None

    @model_validator(mode="after")
    def _coded_or_free_text(self):
        if self.coded_allergen is None and not (self.non_coded_allergen or "").strip():
            raise ValueError("An allergen needs a coded concept or a non-coded description")
        return self

    def is_coded(self) -> bool:
        if self.coded_allergen is None:
            return False
        return self.coded_allergen.uuid != settings.allergen_other_non_coded_uuid

    def is_same_allergen(self, other: Optional[Allergen]) -> bool:
        if other is None:
            return False
        if self.is_coded() or other.is_coded():
            return (self.is_coded() and other.is_coded()
                    and same_concept(self.coded_allergen, other.coded_allergen))
        if not (self.non_coded_allergen or "").strip():
            return False
        return _same_text(self.non_coded_allergen, other.non_coded_allergen)


class AllergyReaction(BaseModel):
    id: Optional[int] = None
    uuid: Optional[str] = None
    # back-reference for lookup only
    allergy_id: Optional[int] = None
    reaction: Optional[Concept] = None
    reaction_non_coded: Optional[str] = None

    def has_same_values(self, other: AllergyReaction) -> bool:
        return (same_concept(self.reaction, other.reaction)
                and (self.reaction_non_coded or None) == (other.reaction_non_coded or None))


class Allergy(BaseModel):
    id: Optional[int] = None
    uuid: Optional[str] = None
    # back-reference for lookup only
    patient_id: Optional[int] = None
    allergen: Allergen
    severity: Optional[Concept] = None
    comment: Optional[str] = None
    reactions: List[AllergyReaction] = Field(default_factory=list)
    voided: bool = False

    def add_reaction(self, reaction: AllergyReaction) -> bool:
        """
        Attach a reaction to this allergy.

        Returns False, leaving the list untouched, when a reaction with the
        same concept and the same non-coded text is already present.
        """
        for existing in self.reactions:
            if existing.has_same_values(reaction):
                return False
        reaction.allergy_id = self.id
        self.reactions.append(reaction)
        return True

    def has_same_reactions(self, other: Allergy) -> bool:
        if len(self.reactions) != len(other.reactions):
            return False
        for reaction in self.reactions:
            if reaction.id is None:
                return False
            match = next((r for r in other.reactions if r.id == reaction.id), None)
            if match is None or not reaction.has_same_values(match):
                return False
        return True

    def has_same_values(self, other: Allergy) -> bool:
        """
        True when every persisted field of `other` equals this allergy's.

        A False result is what turns an edit into void + recreate.
        """
        if self.id != other.id or self.patient_id != other.patient_id:
            return False
        if self.allergen.allergen_type != other.allergen.allergen_type:
            return False
        if not same_concept(self.allergen.coded_allergen, other.allergen.coded_allergen):
            return False
        if (self.allergen.non_coded_allergen or None) != (other.allergen.non_coded_allergen or None):
            return False
        if not same_concept(self.severity, other.severity):
            return False
        if (self.comment or None) != (other.comment or None):
            return False
        return self.has_same_reactions(other)


class Allergies:
    """
    A patient's active allergy list together with its aggregate status.

    The status follows the list: adding makes it SEE_LIST, emptying it falls
    back to UNKNOWN, and NO_KNOWN_ALLERGIES needs an explicit
    confirm_no_known_allergies() on an empty list.
    """

    def __init__(self, allergies: Optional[List[Allergy]] = None,
                 status: AllergyStatus = AllergyStatus.UNKNOWN):
        self._allergies: List[Allergy] = list(allergies or [])
        self._status = AllergyStatus.SEE_LIST if self._allergies else status

    @property
    def status(self) -> AllergyStatus:
        return self._status

    def add(self, allergy: Allergy) -> None:
        if self.contains_allergen(allergy):
            raise DuplicateAllergenError(allergy.allergen)
        self._allergies.append(allergy)
        self._status = AllergyStatus.SEE_LIST

    def remove(self, allergy: Allergy) -> None:
        for index, existing in enumerate(self._allergies):
            if existing is allergy or _same_identity(existing, allergy):
                del self._allergies[index]
                self._on_shrink()
                return
        raise ValueError("allergy is not in the list")

    def pop(self, index: int = -1) -> Allergy:
        allergy = self._allergies.pop(index)
        self._on_shrink()
        return allergy

    def clear(self) -> None:
        self._allergies.clear()
        self._status = AllergyStatus.UNKNOWN

    def confirm_no_known_allergies(self) -> None:
        if self._allergies:
            raise AllergyStatusError(
                "Cannot confirm no known allergies while the allergy list is not empty"
            )
        self._status = AllergyStatus.NO_KNOWN_ALLERGIES

    def get_allergy(self, allergy_id: Optional[int]) -> Optional[Allergy]:
        if allergy_id is None:
            return None
        return next((a for a in self._allergies if a.id == allergy_id), None)

    def contains_allergen(self, allergy: Allergy) -> bool:
        return any(
            existing.allergen.is_same_allergen(allergy.allergen)
            for existing in self._allergies
        )

    def _on_shrink(self) -> None:
        if not self._allergies:
            self._status = AllergyStatus.UNKNOWN

    def __contains__(self, allergy: object) -> bool:
        return any(_same_identity(existing, allergy) for existing in self._allergies)

    def __iter__(self) -> Iterator[Allergy]:
        return iter(self._allergies)

    def __len__(self) -> int:
        return len(self._allergies)

    def __getitem__(self, index: int) -> Allergy:
        return self._allergies[index]

    def __repr__(self):
        return f"<Allergies status={self._status.value!r} size={len(self._allergies)}>"


def _same_identity(a: Allergy, b: object) -> bool:
    if not isinstance(b, Allergy):
        return False
    if a.uuid is None or b.uuid is None:
        return a is b
    return a.uuid == b.uuid


# --------------------------------------------------------------------------
# HTTP payloads
# --------------------------------------------------------------------------
class AllergyListIn(BaseModel):
    """
    Desired allergy list for PUT /patients/{id}/allergies.

    * `status`    - send "No known allergies" together with an empty list
                    to confirm the patient has none
    * `allergies` - the full target list; entries with an `id` are matched
                    against what is stored, entries without one are new
    """
    status: Optional[AllergyStatus] = None
    allergies: List[Allergy] = Field(default_factory=list)


class AllergyListOut(BaseModel):
    status: AllergyStatus
    allergies: List[Allergy]

    @classmethod
    def from_allergies(cls, allergies: Allergies) -> AllergyListOut:
        return cls(status=allergies.status, allergies=list(allergies))
