from .concept import ConceptModel
from .patient import PatientModel
from .allergy import AllergyModel, AllergyReactionModel

__all__ = [
    "ConceptModel",
    "PatientModel",
    "AllergyModel",
    "AllergyReactionModel",
]
