"""Stored Document Schemas.

This module defines typed models for the FHIR-shaped documents read from the
Hearth document store. Only the fields the export reads are declared; anything
else in a stored document is ignored.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Documents are validated at the store adapter boundary (Pydantic V2)
    - Field names are snake_case with the stored camelCase names as aliases
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class COLLECTION_NAMES:
    """Names of the collections in the document store."""
    COMPOSITION = "Composition"
    ENCOUNTER = "Encounter"
    LOCATION = "Location"
    OBSERVATION = "Observation"
    PATIENT = "Patient"
    RELATEDPERSON = "RelatedPerson"
    TASK = "Task"


def reference_id(reference: Optional[str], resource_type: str) -> Optional[str]:
    """Extract the identifier from a ``<ResourceType>/<id>`` reference.

    Parameters:
        reference: Reference string (e.g. ``Location/abc``)
        resource_type: Expected resource type prefix

    Returns:
        The identifier, or None if the reference is missing or of another type
    """
    if not reference:
        return None
    prefix = f"{resource_type}/"
    if not reference.startswith(prefix):
        return None
    return reference[len(prefix):] or None


class _Element(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Coding(_Element):
    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None


class CodeableConcept(_Element):
    coding: list[Coding] = Field(default_factory=list)
    text: Optional[str] = None

    @property
    def first_code(self) -> Optional[str]:
        """Code of the first coding, if any."""
        return self.coding[0].code if self.coding else None


class Reference(_Element):
    reference: Optional[str] = None


class Quantity(_Element):
    value: Optional[Union[int, float]] = None
    unit: Optional[str] = None


class Extension(_Element):
    url: str
    value_string: Optional[str] = Field(None, alias="valueString")
    value_reference: Optional[Reference] = Field(None, alias="valueReference")


class Address(_Element):
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None


class Meta(_Element):
    last_updated: Optional[str] = Field(None, alias="lastUpdated")


def find_extension(extensions: list[Extension], url: str) -> Optional[Extension]:
    """Return the first extension with the given URL."""
    return next((ext for ext in extensions if ext.url == url), None)


class FhirDocument(_Element):
    """Base class for all stored documents."""
    id: Optional[str] = None


class Section(_Element):
    title: Optional[str] = None
    entry: list[Reference] = Field(default_factory=list)

    @property
    def reference(self) -> Optional[str]:
        """Reference of the first entry of the section."""
        return self.entry[0].reference if self.entry else None

    def references(self, resource_type: str) -> bool:
        """Check whether the section's first entry points at ``resource_type``."""
        return reference_id(self.reference, resource_type) is not None


class Composition(FhirDocument):
    """Root event record (birth or death declaration)."""
    id: str
    title: Optional[str] = None
    date: Optional[str] = None
    section: list[Section] = Field(default_factory=list)


class Task(FhirDocument):
    """Workflow record tracking a Composition's processing state."""
    focus: Optional[Reference] = None
    business_status: Optional[CodeableConcept] = Field(None, alias="businessStatus")
    extension: list[Extension] = Field(default_factory=list)

    @property
    def business_status_code(self) -> Optional[str]:
        return self.business_status.first_code if self.business_status else None


class Patient(FhirDocument):
    gender: Optional[str] = None
    birth_date: Optional[str] = Field(None, alias="birthDate")
    deceased_date_time: Optional[str] = Field(None, alias="deceasedDateTime")
    marital_status: Optional[CodeableConcept] = Field(None, alias="maritalStatus")
    multiple_birth_integer: Optional[int] = Field(None, alias="multipleBirthInteger")
    address: list[Address] = Field(default_factory=list)
    extension: list[Extension] = Field(default_factory=list)


class EncounterLocation(_Element):
    location: Optional[Reference] = None


class Encounter(FhirDocument):
    location: list[EncounterLocation] = Field(default_factory=list)

    @property
    def location_id(self) -> Optional[str]:
        if not self.location or self.location[0].location is None:
            return None
        return reference_id(self.location[0].location.reference, "Location")


class Observation(FhirDocument):
    code: Optional[CodeableConcept] = None
    value_string: Optional[str] = Field(None, alias="valueString")
    value_quantity: Optional[Quantity] = Field(None, alias="valueQuantity")
    value_codeable_concept: Optional[CodeableConcept] = Field(None, alias="valueCodeableConcept")
    context: Optional[Reference] = None
    effective_date_time: Optional[str] = Field(None, alias="effectiveDateTime")
    issued: Optional[str] = None
    meta: Optional[Meta] = None


class RelatedPerson(FhirDocument):
    relationship: Optional[CodeableConcept] = None
    patient: Optional[Reference] = None


class Location(FhirDocument):
    name: Optional[str] = None
    type: Optional[CodeableConcept] = None
    part_of: Optional[Reference] = Field(None, alias="partOf")
    address: Optional[Address] = None

    @property
    def type_code(self) -> Optional[str]:
        return self.type.first_code if self.type else None


DOCUMENT_MODELS: dict[str, type[FhirDocument]] = {
    COLLECTION_NAMES.COMPOSITION: Composition,
    COLLECTION_NAMES.ENCOUNTER: Encounter,
    COLLECTION_NAMES.LOCATION: Location,
    COLLECTION_NAMES.OBSERVATION: Observation,
    COLLECTION_NAMES.PATIENT: Patient,
    COLLECTION_NAMES.RELATEDPERSON: RelatedPerson,
    COLLECTION_NAMES.TASK: Task,
}
