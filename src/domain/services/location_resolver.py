"""Location Hierarchy Resolution.

Event locations come in two shapes. A health facility is a service-delivery
point whose district and state are found by walking ``partOf`` references.
Any other location is an administrative area whose district and state are
referenced directly by its own address fields. The type code of the leaf
selects the strategy.
"""

import logging
from typing import Optional

from src.domain.documents import Location, reference_id
from src.domain.full_composition import LocationNames

logger = logging.getLogger(__name__)

HEALTH_FACILITY_TYPE = "HEALTH_FACILITY"


class LocationHierarchyResolver:
    """Resolves location names against the full Location set of a window.

    The set is indexed by id once; lookups never touch the store.

    Parameters:
        locations: Every Location document in the store
    """

    def __init__(self, locations: list[Location]):
        self._by_id: dict[str, Location] = {}
        for location in locations:
            if location.id and location.id not in self._by_id:
                self._by_id[location.id] = location

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, location_id: Optional[str]) -> Optional[Location]:
        if not location_id:
            return None
        return self._by_id.get(location_id)

    def name_of(self, location_id: Optional[str]) -> str:
        """Name of the Location with the given id, or '' if unknown."""
        location = self.get(location_id)
        return (location.name or "") if location else ""

    def resolve(self, leaf: Location) -> LocationNames:
        """Resolve health center, district, state and city for a leaf location.

        Parameters:
            leaf: Location an event took place at

        Returns:
            LocationNames: Missing ancestors resolve to empty names
        """
        city = (leaf.address.city if leaf.address else None) or ""

        if leaf.type_code == HEALTH_FACILITY_TYPE:
            district = self.get(reference_id(leaf.part_of.reference if leaf.part_of else None, "Location"))
            state = None
            if district is not None and district.part_of is not None:
                state = self.get(reference_id(district.part_of.reference, "Location"))
            return LocationNames(
                health_center=leaf.name or "",
                district=(district.name or "") if district else "",
                state=(state.name or "") if state else "",
                city=city,
            )

        address = leaf.address
        return LocationNames(
            district=self.name_of(address.district if address else None),
            state=self.name_of(address.state if address else None),
            city=city,
        )
