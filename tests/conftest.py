"""Shared fixtures: a small Hearth document graph with one birth, one death
and one declared-but-not-registered record."""

import copy

import pytest

from src.adapters.storage.memory_adapter import InMemoryDocumentStore

OFFICE_EXT = "http://opencrvs.org/specs/extension/regLastOffice"
OCCUPATION_EXT = "http://opencrvs.org/specs/extension/patient-occupation"
EDUCATION_EXT = "http://opencrvs.org/specs/extension/educational-attainment"


def _coded(code):
    return {"coding": [{"system": "http://opencrvs.org/specs", "code": code}]}


def _section(title, reference):
    return {"title": title, "entry": [{"reference": reference}]}


def _observation(obs_id, encounter_id, code, **value):
    return {
        "resourceType": "Observation",
        "id": obs_id,
        "context": {"reference": f"Encounter/{encounter_id}"},
        "code": _coded(code),
        **value,
    }


def _task(task_id, composition_id, status):
    return {
        "resourceType": "Task",
        "id": task_id,
        "focus": {"reference": f"Composition/{composition_id}"},
        "businessStatus": _coded(status),
        "extension": [{"url": OFFICE_EXT, "valueReference": {"reference": "Location/of1"}}],
    }


LOCATIONS = [
    {"resourceType": "Location", "id": "st1", "name": "Central", "type": _coded("ADMIN_STRUCTURE")},
    {
        "resourceType": "Location", "id": "dt1", "name": "Ibombo",
        "type": _coded("ADMIN_STRUCTURE"), "partOf": {"reference": "Location/st1"},
    },
    {
        "resourceType": "Location", "id": "hf1", "name": "Ibombo District Hospital",
        "type": _coded("HEALTH_FACILITY"), "partOf": {"reference": "Location/dt1"},
        "address": {"city": "Ibombo Town"},
    },
    {"resourceType": "Location", "id": "of1", "name": "Ibombo Office", "type": _coded("CRVS_OFFICE")},
    {
        "resourceType": "Location", "id": "home1", "type": _coded("PRIVATE_HOME"),
        "address": {"city": "Kabwe", "district": "dt1", "state": "st1"},
    },
]

COMPOSITIONS = [
    {
        "resourceType": "Composition",
        "id": "c-birth",
        "title": "Birth Declaration",
        "date": "2022-02-10T10:00:00.000Z",
        "section": [
            _section("Child details", "Patient/p-child"),
            _section("Mother's details", "Patient/p-mother"),
            _section("Father's details", "Patient/p-father"),
            _section("Informant's details", "RelatedPerson/rp-1"),
            _section("Birth encounter", "Encounter/enc-1"),
            _section("Certificates", "DocumentReference/cert-1"),
            _section("Supporting Documents", "DocumentReference/doc-1"),
        ],
    },
    {
        "resourceType": "Composition",
        "id": "c-death",
        "title": "Death Declaration",
        "date": "2022-03-05T08:30:00.000Z",
        "section": [
            _section("Deceased details", "Patient/p-deceased"),
            _section("Informant's details", "RelatedPerson/rp-2"),
            _section("Death encounter", "Encounter/enc-2"),
        ],
    },
    {
        "resourceType": "Composition",
        "id": "c-declared",
        "title": "Birth Declaration",
        "date": "2022-02-15T12:00:00.000Z",
        "section": [_section("Child details", "Patient/p-child")],
    },
]

PATIENTS = [
    {"resourceType": "Patient", "id": "p-child", "gender": "male", "birthDate": "2022-02-01", "multipleBirthInteger": 1},
    {
        "resourceType": "Patient",
        "id": "p-mother",
        "birthDate": "1990-05-05",
        "maritalStatus": {"text": "MARRIED"},
        "address": [{"city": "Lusaka", "district": "dt1", "state": "st1"}],
        "extension": [
            {"url": OCCUPATION_EXT, "valueString": "Nurse"},
            {"url": EDUCATION_EXT, "valueString": "SECOND_STAGE_TERTIARY_ISCED_6"},
        ],
    },
    {"resourceType": "Patient", "id": "p-father", "birthDate": "1988-01-01", "maritalStatus": {"text": "MARRIED"}},
    {"resourceType": "Patient", "id": "p-informant", "birthDate": "1970-03-03"},
    {
        "resourceType": "Patient",
        "id": "p-deceased",
        "gender": "female",
        "birthDate": "1950-01-01",
        "deceasedDateTime": "2022-03-01",
        "maritalStatus": {"text": "WIDOWED"},
        "address": [{"city": "Kabwe", "district": "dt1", "state": "st1"}],
    },
    {"resourceType": "Patient", "id": "p-son", "birthDate": "1975-07-07", "gender": "male"},
]

RELATED_PEOPLE = [
    {"resourceType": "RelatedPerson", "id": "rp-1", "relationship": _coded("GRANDMOTHER"), "patient": {"reference": "Patient/p-informant"}},
    {"resourceType": "RelatedPerson", "id": "rp-2", "relationship": _coded("SON"), "patient": {"reference": "Patient/p-son"}},
]

ENCOUNTERS = [
    {"resourceType": "Encounter", "id": "enc-1", "location": [{"location": {"reference": "Location/hf1"}}]},
    {"resourceType": "Encounter", "id": "enc-2", "location": [{"location": {"reference": "Location/home1"}}]},
]

OBSERVATIONS = [
    _observation("o-1", "enc-1", "3141-9", valueQuantity={"value": 3.5, "unit": "kg"}),
    _observation("o-2", "enc-1", "57722-1", valueQuantity={"value": 2}),
    _observation("o-3", "enc-1", "73764-3", valueString="PHYSICIAN"),
    _observation("o-4", "enc-1", "present-at-birth-reg", valueString="MOTHER_ONLY"),
    _observation("o-5", "enc-2", "cause-of-death-established", valueCodeableConcept=_coded("true")),
    _observation("o-6", "enc-2", "ICD10", valueCodeableConcept=_coded("A01")),
    _observation("o-7", "enc-2", "uncertified-manner-of-death", valueCodeableConcept=_coded("NATURAL_CAUSES")),
    _observation("o-8", "enc-2", "num-male-dependents-on-deceased", valueString="2"),
]

TASKS = [
    _task("t-birth", "c-birth", "REGISTERED"),
    _task("t-death", "c-death", "CERTIFIED"),
    _task("t-declared", "c-declared", "DECLARED"),
]


@pytest.fixture
def collections() -> dict:
    """Fresh copy of the document graph, safe to mutate per test."""
    return copy.deepcopy({
        "Composition": COMPOSITIONS,
        "Task": TASKS,
        "Patient": PATIENTS,
        "RelatedPerson": RELATED_PEOPLE,
        "Encounter": ENCOUNTERS,
        "Observation": OBSERVATIONS,
        "Location": LOCATIONS,
    })


@pytest.fixture
def store(collections) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(collections)
