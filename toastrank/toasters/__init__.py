"""Toasters: listings, hall of fame and rating aggregation.

Note: Router is not exported here to avoid circular imports.
Import directly from toastrank.toasters.router when needed.
"""

from .models import TOASTERS_TABLES_CQL, Toaster
from .service import ToasterService


__all__ = [
    "TOASTERS_TABLES_CQL",
    "Toaster",
    "ToasterService",
]
