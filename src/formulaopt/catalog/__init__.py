"""
Ingredient Catalog
==================

Static lookup tables:
- APIs: cost, dose window, stability and compatibility notes
- Excipients: binders, disintegrants, lubricants, fillers
"""

from .apis import ApiRecord, API_CATALOG, get_api, list_apis
from .excipients import (
    ExcipientRole,
    ExcipientRecord,
    EXCIPIENT_CATALOG,
    ROLE_ORDER,
    COMPLEX_EXCIPIENTS,
    PROHIBITED_EXCIPIENTS,
    excipients_for,
    compatible_excipients,
    find_excipient,
)

__all__ = [
    "ApiRecord",
    "API_CATALOG",
    "get_api",
    "list_apis",
    "ExcipientRole",
    "ExcipientRecord",
    "EXCIPIENT_CATALOG",
    "ROLE_ORDER",
    "COMPLEX_EXCIPIENTS",
    "PROHIBITED_EXCIPIENTS",
    "excipients_for",
    "compatible_excipients",
    "find_excipient",
]
