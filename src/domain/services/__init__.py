"""Domain Services.

This package contains domain services that implement the export and its
collaborators without infrastructure dependencies.
"""

from src.domain.services.assignment_service import AssignmentService
from src.domain.services.composition_resolver import CompositionResolver
from src.domain.services.location_resolver import LocationHierarchyResolver
from src.domain.services.observation_extractor import ObservationCodeExtractor
from src.domain.services.row_builder import build_birth_row, build_death_row, build_row
from src.domain.services.user_seeder import SeedReport, UserSeeder

__all__ = [
    'AssignmentService',
    'CompositionResolver',
    'LocationHierarchyResolver',
    'ObservationCodeExtractor',
    'SeedReport',
    'UserSeeder',
    'build_birth_row',
    'build_death_row',
    'build_row',
]
