"""Exceptions raised by the nutrition engine."""


class NutritionEngineError(Exception):
    """Base class for engine errors."""


class NutrientValidationError(NutritionEngineError, ValueError):
    """Raised for negative, non-numeric or unknown nutrient amounts."""


class SlotLimitError(NutritionEngineError, ValueError):
    """Raised when a comparison would fall outside 2-5 slots."""


class SlotStateError(NutritionEngineError):
    """Raised when a slot operation is not allowed in its current state."""


class ExtractionError(NutritionEngineError):
    """Raised when the extraction collaborator returns nothing usable."""


class CollaboratorError(NutritionEngineError):
    """Raised when a grading or insight collaborator returns a malformed payload."""
