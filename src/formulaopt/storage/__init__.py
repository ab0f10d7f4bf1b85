"""
Storage
=======

Local persistence:
- FormulationStore: SQLite collections (formulations, results, settings)
- SessionStore: JSON file with the last submission and its results
"""

from .store import COLLECTIONS, FormulationStore
from .session import SessionStore

__all__ = ["COLLECTIONS", "FormulationStore", "SessionStore"]
