from enum import Enum

class AllergenType(str, Enum):
    DRUG = "DRUG"
    FOOD = "FOOD"
    ENVIRONMENT = "ENVIRONMENT"
    OTHER = "OTHER"

class AllergyStatus(str, Enum):
    UNKNOWN = "Unknown"
    NO_KNOWN_ALLERGIES = "No known allergies"
    SEE_LIST = "See list"

class VoidReason(str, Enum):
    REMOVED = "Removed from allergy list"
    EDITED = "Edited allergy"
