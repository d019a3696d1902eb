"""Full Composition Schema Definitions.

This module defines the in-memory aggregate built for every root event record
before it is flattened into an export row. The aggregate is always fully
shaped: every field has a deterministic default so row building never has to
deal with missing keys.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Built fresh per Composition, used once, then discarded
    - The section-title vocabulary is a closed mapping validated at import time
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Vital event recorded by a Composition."""
    BIRTH = "Birth"
    DEATH = "Death"


BIRTH_EVENT_TITLE = "Birth Declaration"
DEATH_EVENT_TITLE = "Death Declaration"

# Sections dropped before any reference is followed
NON_CLINICAL_SECTION_TITLES = frozenset({"Certificates", "Supporting Documents"})


class SectionRole(str, Enum):
    """Role a patient plays in a Composition, keyed by section title."""
    CHILD = "child"
    DECEASED = "deceased"
    MOTHER = "mother"
    FATHER = "father"
    INFORMANT = "informant"


TITLE_ROLE_MAP: dict[str, SectionRole] = {
    "Child details": SectionRole.CHILD,
    "Deceased details": SectionRole.DECEASED,
    "Mother's details": SectionRole.MOTHER,
    "Father's details": SectionRole.FATHER,
    "Informant's details": SectionRole.INFORMANT,
}


def classify_event(title: str | None) -> EventType:
    """Classify a Composition by its title.

    Only the birth declaration title yields a birth; every other title,
    including an unrecognized one, is treated as a death.
    """
    return EventType.BIRTH if title == BIRTH_EVENT_TITLE else EventType.DEATH


class PatientSnapshot(BaseModel):
    """Flattened view of a Patient document with location names substituted.

    Parameters:
        gender: Administrative gender as stored
        birth_date: Date of birth as stored
        deceased_date: Date of death as stored
        marital_status: Marital status text
        multiple_birth: Birth order for multiple births (0 if unknown)
        occupation: Occupation extension value
        educational_attainment: Educational attainment extension value
        city: Address city
        district: Address district name
        state: Address state name
    """

    model_config = ConfigDict(frozen=True)

    gender: str = ""
    birth_date: str = ""
    deceased_date: str = ""
    marital_status: str = ""
    multiple_birth: int = 0
    occupation: str = ""
    educational_attainment: str = ""
    city: str = ""
    district: str = ""
    state: str = ""


class InformantSnapshot(PatientSnapshot):
    """Patient snapshot of the informant plus its relationship code."""
    relationship: str = ""


class ObservationValues(BaseModel):
    """Values extracted from the Observations of a Composition's Encounter."""

    model_config = ConfigDict(frozen=True)

    cause_of_death_method: str = ""
    birth_plurality_of_pregnancy: str = ""
    body_weight_measured: str = ""
    birth_attendant_title: str = ""
    uncertified_manner_of_death: str = ""
    verbal_autopsy_description: str = ""
    cause_of_death_established: str = ""
    cause_of_death: str = ""
    num_male_dependents_on_deceased: str = ""
    num_female_dependents_on_deceased: str = ""
    present_at_birth_reg: str = ""


class LocationNames(BaseModel):
    """Names resolved for the place an event occurred."""

    model_config = ConfigDict(frozen=True)

    health_center: str = ""
    district: str = ""
    state: str = ""
    city: str = ""


class FullComposition(BaseModel):
    """Normalized aggregate of one Composition and everything it references."""

    composition_id: str
    event: EventType
    child: PatientSnapshot = Field(default_factory=PatientSnapshot)
    deceased: PatientSnapshot = Field(default_factory=PatientSnapshot)
    mother: PatientSnapshot = Field(default_factory=PatientSnapshot)
    father: PatientSnapshot = Field(default_factory=PatientSnapshot)
    informant: InformantSnapshot = Field(default_factory=InformantSnapshot)
    observations: ObservationValues = Field(default_factory=ObservationValues)
    office_location: str = ""
    health_center: str = ""
    event_district: str = ""
    event_state: str = ""
    event_city: str = ""


def _validate_role_map() -> None:
    slots = FullComposition.model_fields
    missing = [role.value for role in TITLE_ROLE_MAP.values() if role.value not in slots]
    if missing:
        raise RuntimeError(f"Section roles without a FullComposition slot: {missing}")


_validate_role_map()
