# app/core/exceptions.py


class AllergyAPIError(Exception):
    """Base class for allergy rule violations raised by the domain layer."""


class DuplicateAllergenError(AllergyAPIError):
    def __init__(self, allergen):
        self.allergen = allergen
        label = allergen.non_coded_allergen or (
            allergen.coded_allergen.name if allergen.coded_allergen else None
        )
        super().__init__(f"Allergen '{label}' is already in the allergy list")


class AllergyStatusError(AllergyAPIError):
    pass


class ConceptNotFoundError(AllergyAPIError):
    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Concept '{identifier}' does not exist")
