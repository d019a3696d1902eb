"""Domain layer for VS-Export.

This module contains the document schemas, the FullComposition aggregate and
the export row schemas. All domain models are pure Python with no external
dependencies beyond Pydantic and pandas.
"""

from .full_composition import (
    EventType,
    FullComposition,
    InformantSnapshot,
    PatientSnapshot,
)
from .rows import BirthRow, DeathRow

__all__ = [
    "EventType",
    "FullComposition",
    "InformantSnapshot",
    "PatientSnapshot",
    "BirthRow",
    "DeathRow",
]
