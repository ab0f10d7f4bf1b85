"""Exception hierarchy for the formula optimizer."""


class FormulaOptimizerError(Exception):
    """Base class for all optimizer errors."""


class UnknownIngredientError(FormulaOptimizerError, KeyError):
    """Raised when an API key is not present in the catalog."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown ingredient: {self.key!r}"


class OptimizationError(FormulaOptimizerError):
    """Raised when a search strategy cannot produce a formulation."""


class StorageError(FormulaOptimizerError):
    """Raised when the record store cannot be read or written."""
