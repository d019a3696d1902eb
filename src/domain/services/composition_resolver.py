"""Composition Resolution.

Builds one FullComposition from one root Composition by following its section
references through the document store: patients per role, the encounter's
location hierarchy, the encounter's observations, and the informant's
related person.

Architecture:
    - Depends only on the DocumentStorePort contract
    - The Location set is passed in, already indexed, and never re-read
    - Any exception escapes to the caller, which skips only this record
"""

import logging
from typing import Optional

from src.domain.documents import (
    COLLECTION_NAMES,
    Composition,
    Encounter,
    Location,
    Observation,
    Patient,
    RelatedPerson,
    Section,
    Task,
    find_extension,
    reference_id,
)
from src.domain.full_composition import (
    BIRTH_EVENT_TITLE,
    DEATH_EVENT_TITLE,
    NON_CLINICAL_SECTION_TITLES,
    TITLE_ROLE_MAP,
    FullComposition,
    InformantSnapshot,
    LocationNames,
    ObservationValues,
    PatientSnapshot,
    SectionRole,
    classify_event,
)
from src.domain.ports import DocumentStorePort, ResolutionError
from src.domain.services.location_resolver import LocationHierarchyResolver
from src.domain.services.observation_extractor import ObservationCodeExtractor

logger = logging.getLogger(__name__)

OFFICE_LOCATION_EXTENSION_URL = "http://opencrvs.org/specs/extension/regLastOffice"
PATIENT_OCCUPATION_EXTENSION_URL = "http://opencrvs.org/specs/extension/patient-occupation"
PATIENT_EDUCATION_EXTENSION_URL = "http://opencrvs.org/specs/extension/educational-attainment"


def clinical_sections(composition: Composition) -> list[Section]:
    """Sections that carry clinical references (titled, not certificates or documents)."""
    return [
        section for section in composition.section
        if section.title and section.title not in NON_CLINICAL_SECTION_TITLES
    ]


def _first_section(sections: list[Section], resource_type: str) -> Optional[Section]:
    return next((section for section in sections if section.references(resource_type)), None)


def _extension_value(patient: Patient, url: str) -> str:
    extension = find_extension(patient.extension, url)
    return (extension.value_string if extension else None) or ""


def make_patient_snapshot(patient: Patient, locations: LocationHierarchyResolver) -> PatientSnapshot:
    """Flatten a Patient, replacing address district/state ids with Location names."""
    address = patient.address[0] if patient.address else None
    district = ""
    state = ""
    city = ""
    if address is not None:
        city = address.city or ""
        if address.district:
            district = locations.name_of(address.district)
        if address.state:
            state = locations.name_of(address.state)

    return PatientSnapshot(
        gender=patient.gender or "",
        birth_date=patient.birth_date or "",
        deceased_date=patient.deceased_date_time or "",
        marital_status=(patient.marital_status.text if patient.marital_status else None) or "",
        multiple_birth=patient.multiple_birth_integer or 0,
        occupation=_extension_value(patient, PATIENT_OCCUPATION_EXTENSION_URL),
        educational_attainment=_extension_value(patient, PATIENT_EDUCATION_EXTENSION_URL),
        city=city,
        district=district,
        state=state,
    )


class CompositionResolver:
    """Resolves a Composition into a FullComposition.

    Parameters:
        store: Document store used for per-record lookups
        locations: Indexed Location set of the current window
        extractor: Observation extractor (defaults to the standard field table)

    Example Usage:
        ```python
        resolver = CompositionResolver(store, LocationHierarchyResolver(locations))
        full_composition = resolver.resolve(composition, task)
        ```
    """

    def __init__(
        self,
        store: DocumentStorePort,
        locations: LocationHierarchyResolver,
        extractor: Optional[ObservationCodeExtractor] = None
    ):
        self.store = store
        self.locations = locations
        self.extractor = extractor or ObservationCodeExtractor()

    def resolve(self, composition: Composition, task: Task) -> FullComposition:
        """Build the FullComposition of one root record.

        Parameters:
            composition: Root event record
            task: Task whose focus is the composition

        Returns:
            FullComposition: Fully shaped aggregate

        Raises:
            ResolutionError: If a referenced Encounter or its Location cannot be found
            StoreError: If a store lookup fails
        """
        sections = clinical_sections(composition)

        if composition.title not in (BIRTH_EVENT_TITLE, DEATH_EVENT_TITLE):
            logger.warning(
                f"Composition {composition.id} has unrecognized title '{composition.title}', exporting as death"
            )

        fields: dict = {
            "composition_id": composition.id,
            "event": classify_event(composition.title),
        }
        fields.update(self._resolve_patients(sections))

        encounter_section = _first_section(sections, "Encounter")
        location_names = LocationNames()
        observations = ObservationValues()
        if encounter_section is not None:
            location_names = self._resolve_event_location(encounter_section)
            observations = self._resolve_observations(encounter_section)

        fields.update(
            health_center=location_names.health_center,
            event_district=location_names.district,
            event_state=location_names.state,
            event_city=location_names.city,
            office_location=self._resolve_office_location(task),
            observations=observations,
        )

        informant = self._resolve_informant(sections)
        if informant is not None:
            fields["informant"] = informant

        return FullComposition(**fields)

    def _resolve_patients(self, sections: list[Section]) -> dict[str, PatientSnapshot]:
        patient_sections = [section for section in sections if section.references("Patient")]
        patient_ids = [reference_id(section.reference, "Patient") for section in patient_sections]
        if not patient_ids:
            return {}

        patients = {
            patient.id: patient
            for patient in self.store.find_by_ids(COLLECTION_NAMES.PATIENT, patient_ids)
        }

        snapshots: dict[str, PatientSnapshot] = {}
        for section, patient_id in zip(patient_sections, patient_ids):
            role = TITLE_ROLE_MAP.get(section.title)
            patient = patients.get(patient_id)
            if role is None or patient is None:
                continue
            snapshot = make_patient_snapshot(patient, self.locations)
            if role is SectionRole.INFORMANT:
                snapshot = InformantSnapshot(**snapshot.model_dump())
            snapshots[role.value] = snapshot
        return snapshots

    def _resolve_event_location(self, encounter_section: Section) -> LocationNames:
        encounter_id = reference_id(encounter_section.reference, "Encounter")
        encounters = self.store.find_by_ids(COLLECTION_NAMES.ENCOUNTER, [encounter_id])
        if not encounters:
            raise ResolutionError(
                f"Encounter {encounter_id} not found",
                reference=encounter_section.reference
            )
        encounter: Encounter = encounters[0]

        leaf: Optional[Location] = self.locations.get(encounter.location_id)
        if leaf is None:
            raise ResolutionError(
                f"Location {encounter.location_id} of encounter {encounter_id} not found",
                reference=f"Location/{encounter.location_id}"
            )
        return self.locations.resolve(leaf)

    def _resolve_office_location(self, task: Task) -> str:
        extension = find_extension(task.extension, OFFICE_LOCATION_EXTENSION_URL)
        if extension is None or extension.value_reference is None:
            return ""
        return self.locations.name_of(reference_id(extension.value_reference.reference, "Location"))

    def _resolve_observations(self, encounter_section: Section) -> ObservationValues:
        observations: list[Observation] = self.store.find_by_field(
            COLLECTION_NAMES.OBSERVATION,
            "context.reference",
            encounter_section.reference
        )
        return self.extractor.extract(observations)

    def _resolve_informant(self, sections: list[Section]) -> Optional[InformantSnapshot]:
        section = _first_section(sections, "RelatedPerson")
        if section is None:
            return None

        related_people: list[RelatedPerson] = self.store.find_by_ids(
            COLLECTION_NAMES.RELATEDPERSON,
            [reference_id(section.reference, "RelatedPerson")]
        )
        if not related_people or related_people[0].patient is None:
            return None
        related_person = related_people[0]

        patient_id = reference_id(related_person.patient.reference, "Patient")
        if patient_id is None:
            return None
        patients = self.store.find_by_ids(COLLECTION_NAMES.PATIENT, [patient_id])
        if not patients:
            raise ResolutionError(
                f"Informant patient {patient_id} not found",
                reference=related_person.patient.reference
            )

        snapshot = make_patient_snapshot(patients[0], self.locations)
        relationship = related_person.relationship.first_code if related_person.relationship else None
        return InformantSnapshot(**snapshot.model_dump(), relationship=relationship or "")
