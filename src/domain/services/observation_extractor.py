"""Observation Code Extraction.

Matches the Observations recorded against one Encounter to a fixed table of
expected codes and extracts a typed value for each named field.

When several Observations share a code, the most recent one wins, ordered by
``effectiveDateTime``, then ``issued``, then ``meta.lastUpdated``. Observations
without a distinguishing timestamp keep store order, first one first.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import pandas as pd

from src.domain.documents import Observation
from src.domain.full_composition import ObservationValues

logger = logging.getLogger(__name__)


class ValueShape(str, Enum):
    CODED = "coded"
    QUANTITY = "quantity"
    QUANTITY_WITH_UNIT = "quantity_with_unit"
    STRING = "string"


@dataclass(frozen=True)
class ObservationField:
    name: str
    code: str
    shape: ValueShape


class OBSERVATION_CODE:
    CAUSE_OF_DEATH_METHOD = "cause-of-death-method"
    BIRTH_PLURALITY_OF_PREGNANCY = "57722-1"
    BODY_WEIGHT_MEASURED = "3141-9"
    BIRTH_ATTENDANT_TITLE = "73764-3"
    CAUSE_OF_DEATH = "ICD10"
    UNCERTIFIED_MANNER_OF_DEATH = "uncertified-manner-of-death"
    VERBAL_AUTOPSY_DESCRIPTION = "lay-reported-or-verbal-autopsy-description"
    CAUSE_OF_DEATH_ESTABLISHED = "cause-of-death-established"
    NUM_MALE_DEPENDENTS_ON_DECEASED = "num-male-dependents-on-deceased"
    NUM_FEMALE_DEPENDENTS_ON_DECEASED = "num-female-dependents-on-deceased"
    PRESENT_AT_BIRTH_REG = "present-at-birth-reg"


OBSERVATION_FIELDS: tuple[ObservationField, ...] = (
    ObservationField("cause_of_death_method", OBSERVATION_CODE.CAUSE_OF_DEATH_METHOD, ValueShape.CODED),
    ObservationField("birth_plurality_of_pregnancy", OBSERVATION_CODE.BIRTH_PLURALITY_OF_PREGNANCY, ValueShape.QUANTITY),
    ObservationField("body_weight_measured", OBSERVATION_CODE.BODY_WEIGHT_MEASURED, ValueShape.QUANTITY_WITH_UNIT),
    ObservationField("birth_attendant_title", OBSERVATION_CODE.BIRTH_ATTENDANT_TITLE, ValueShape.STRING),
    ObservationField("uncertified_manner_of_death", OBSERVATION_CODE.UNCERTIFIED_MANNER_OF_DEATH, ValueShape.CODED),
    ObservationField("verbal_autopsy_description", OBSERVATION_CODE.VERBAL_AUTOPSY_DESCRIPTION, ValueShape.STRING),
    ObservationField("cause_of_death_established", OBSERVATION_CODE.CAUSE_OF_DEATH_ESTABLISHED, ValueShape.CODED),
    ObservationField("cause_of_death", OBSERVATION_CODE.CAUSE_OF_DEATH, ValueShape.CODED),
    ObservationField("num_male_dependents_on_deceased", OBSERVATION_CODE.NUM_MALE_DEPENDENTS_ON_DECEASED, ValueShape.STRING),
    ObservationField("num_female_dependents_on_deceased", OBSERVATION_CODE.NUM_FEMALE_DEPENDENTS_ON_DECEASED, ValueShape.STRING),
    ObservationField("present_at_birth_reg", OBSERVATION_CODE.PRESENT_AT_BIRTH_REG, ValueShape.STRING),
)


def format_number(value: Optional[Union[int, float]]) -> str:
    """Render a quantity value without a trailing '.0' for whole numbers."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_EARLIEST = pd.Timestamp.min.tz_localize("UTC")


def _as_utc(value: Optional[str]) -> pd.Timestamp:
    """Parse a FHIR timestamp to UTC; missing or unparseable values sort first."""
    if not value:
        return _EARLIEST
    try:
        timestamp = pd.Timestamp(value)
    except (ValueError, TypeError):
        logger.debug(f"Unparseable observation timestamp: {value!r}")
        return _EARLIEST
    if pd.isna(timestamp):
        return _EARLIEST
    # Naive values are taken as UTC
    if timestamp.tzinfo is None:
        return timestamp.tz_localize("UTC")
    return timestamp.tz_convert("UTC")


def _recency_key(observation: Observation) -> tuple[pd.Timestamp, pd.Timestamp, pd.Timestamp]:
    return (
        _as_utc(observation.effective_date_time),
        _as_utc(observation.issued),
        _as_utc(observation.meta.last_updated if observation.meta else None),
    )


def _primary_code(observation: Observation) -> Optional[str]:
    return observation.code.first_code if observation.code else None


def extract_value(observation: Observation, shape: ValueShape) -> str:
    """Extract the value of an Observation according to its expected shape."""
    if shape == ValueShape.CODED:
        concept = observation.value_codeable_concept
        return (concept.first_code if concept else None) or ""
    if shape == ValueShape.STRING:
        return observation.value_string or ""

    quantity = observation.value_quantity
    if quantity is None:
        return ""
    value = format_number(quantity.value)
    if shape == ValueShape.QUANTITY_WITH_UNIT:
        return f"{value} {quantity.unit or ''}".strip()
    return value


class ObservationCodeExtractor:
    """Extracts named values from Observations by code.

    Parameters:
        fields: Field table to extract (defaults to ``OBSERVATION_FIELDS``)
    """

    def __init__(self, fields: tuple[ObservationField, ...] = OBSERVATION_FIELDS):
        self.fields = fields

    def select(self, observations: list[Observation], code: str) -> Optional[Observation]:
        """Pick the Observation that supplies the value for ``code``."""
        best: Optional[Observation] = None
        for observation in observations:
            if _primary_code(observation) != code:
                continue
            if best is None or _recency_key(observation) > _recency_key(best):
                best = observation
        return best

    def extract(self, observations: list[Observation]) -> ObservationValues:
        """Extract every configured field; unmatched fields stay empty."""
        values: dict[str, str] = {}
        for field in self.fields:
            observation = self.select(observations, field.code)
            if observation is not None:
                values[field.name] = extract_value(observation, field.shape)
        return ObservationValues(**values)
