"""Export Row Schemas.

Fixed-column rows written to the birth and death reports. Every column has a
default, so a row built from a maximally empty FullComposition still carries
the complete column set in the same order.

Column keys (camelCase) are the internal keys of the report; header labels are
the upper-case descriptions written as the first line of each file.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ExportRow(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Return the row keyed by column key, in column order."""
        return self.model_dump(by_alias=True)


class BirthRow(_ExportRow):
    child_gen: str = ""
    child_dob: str = Field("", alias="childDOB")
    child_ord: int = 0
    birth_city: str = ""
    birth_state: str = ""
    birth_district: str = ""
    health_center: str = ""
    office_location: str = ""
    birth_plurality_of_pregnancy: str = ""
    body_weight_measured: str = ""
    birth_attendant_title: str = ""
    present_at_birth_reg: str = ""
    mother_dob: str = Field("", alias="motherDOB")
    mother_marital_status: str = ""
    mother_occupation: str = ""
    mother_educational_attainment: str = ""
    mother_city: str = ""
    mother_district: str = ""
    mother_state: str = ""
    father_dob: str = Field("", alias="fatherDOB")
    father_marital_status: str = ""
    father_occupation: str = ""
    father_educational_attainment: str = ""
    father_city: str = ""
    father_district: str = ""
    father_state: str = ""
    informant_dob: str = Field("", alias="informantDOB")
    informant_marital_status: str = ""
    informant_occupation: str = ""
    informant_educational_attainment: str = ""
    informant_city: str = ""
    informant_district: str = ""
    informant_state: str = ""
    informant_relationship: str = ""


class DeathRow(_ExportRow):
    deceased_gen: str = ""
    deceased_dob: str = Field("", alias="deceasedDOB")
    deceased_marital_status: str = ""
    deceased_date: str = ""
    death_city: str = ""
    death_state: str = ""
    death_district: str = ""
    health_center: str = ""
    office_location: str = ""
    uncertified_manner_of_death: str = ""
    verbal_autopsy_description: str = ""
    cause_of_death_method: str = ""
    cause_of_death_established: str = ""
    cause_of_death: str = ""
    num_male_dependents_on_deceased: str = ""
    num_female_dependents_on_deceased: str = ""
    informant_dob: str = Field("", alias="informantDOB")
    informant_marital_status: str = ""
    informant_occupation: str = ""
    informant_city: str = ""
    informant_district: str = ""
    informant_state: str = ""
    informant_relationship: str = ""


BIRTH_COLUMNS: list[str] = list(BirthRow().to_record())
DEATH_COLUMNS: list[str] = list(DeathRow().to_record())

BIRTH_HEADER_LABELS: dict[str, str] = {
    "childGen": "CHILD GENDER",
    "childDOB": "CHILD DOB",
    "childOrd": "CHILD ORDER",
    "birthCity": "BIRTH CITY",
    "birthState": "BIRTH STATE",
    "birthDistrict": "BIRTH DISTRICT",
    "healthCenter": "HEALTH CENTER",
    "officeLocation": "OFFICE LOCATION",
    "birthPluralityOfPregnancy": "PLURALITY OF PREGNANCY",
    "bodyWeightMeasured": "BODY WEIGHT MEASURED",
    "birthAttendantTitle": "ATTENDANT TITLE",
    "presentAtBirthReg": "PRESENT AT REG",
    "motherDOB": "MOTHER DOB",
    "motherMaritalStatus": "MOTHER MARITAL STATUS",
    "motherOccupation": "MOTHER OCCUPATION",
    "motherEducationalAttainment": "MOTHER EDUCATION",
    "motherCity": "MOTHER CITY",
    "motherDistrict": "MOTHER DISTRICT",
    "motherState": "MOTHER STATE",
    "fatherDOB": "FATHER DOB",
    "fatherMaritalStatus": "FATHER MARITAL STATUS",
    "fatherOccupation": "FATHER OCCUPATION",
    "fatherEducationalAttainment": "FATHER EDUCATION",
    "fatherCity": "FATHER CITY",
    "fatherDistrict": "FATHER DISTRICT",
    "fatherState": "FATHER STATE",
    "informantDOB": "INFORMANT DOB",
    "informantMaritalStatus": "INFORMANT MARITAL STATUS",
    "informantOccupation": "INFORMANT OCCUPATION",
    "informantEducationalAttainment": "INFORMANT EDUCATION",
    "informantCity": "INFORMANT CITY",
    "informantDistrict": "INFORMANT DISTRICT",
    "informantState": "INFORMANT STATE",
    "informantRelationship": "INFORMANT RELATIONSHIP",
}

DEATH_HEADER_LABELS: dict[str, str] = {
    "deceasedGen": "DECEASED GENDER",
    "deceasedDOB": "DECEASED DOB",
    "deceasedMaritalStatus": "DECEASED MARITAL STATUS",
    "deceasedDate": "DECEASED DATE",
    "deathCity": "DEATH CITY",
    "deathState": "DEATH STATE",
    "deathDistrict": "DEATH DISTRICT",
    "healthCenter": "HEALTH CENTER",
    "officeLocation": "OFFICE LOCATION",
    "uncertifiedMannerOfDeath": "UNCERTIFIED MANNER OF DEATH",
    "verbalAutopsyDescription": "VERBAL AUTOPSY DESCRIPTION",
    "causeOfDeathMethod": "CAUSE OF DEATH METHOD",
    "causeOfDeathEstablished": "CAUSE OF DEATH ESTABLISHED",
    "causeOfDeath": "CAUSE OF DEATH",
    "numMaleDependentsOnDeceased": "NUM MALE DEPENDENTS ON DECEASED",
    "numFemaleDependentsOnDeceased": "NUM FEMALE DEPENDENTS ON DECEASED",
    "informantDOB": "INFORMANT DOB",
    "informantMaritalStatus": "INFORMANT MARITAL STATUS",
    "informantOccupation": "INFORMANT OCCUPATION",
    "informantCity": "INFORMANT CITY",
    "informantDistrict": "INFORMANT DISTRICT",
    "informantState": "INFORMANT STATE",
    "informantRelationship": "INFORMANT RELATIONSHIP",
}
