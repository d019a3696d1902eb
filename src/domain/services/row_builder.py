"""Row Building.

Pure mapping from a FullComposition to a fixed-column export row. Each builder
starts from a fully defaulted row and overwrites only what the aggregate
provides, so the column set never varies.
"""

from src.domain.full_composition import EventType, FullComposition
from src.domain.rows import BirthRow, DeathRow


def build_birth_row(fc: FullComposition) -> BirthRow:
    child, mother, father, informant = fc.child, fc.mother, fc.father, fc.informant
    obs = fc.observations
    return BirthRow(
        # Address
        birth_district=fc.event_district,
        birth_state=fc.event_state,
        birth_city=fc.event_city,
        health_center=fc.health_center,
        office_location=fc.office_location,
        # Child
        child_gen=child.gender,
        child_dob=child.birth_date,
        child_ord=child.multiple_birth,
        # Mother
        mother_dob=mother.birth_date,
        mother_marital_status=mother.marital_status,
        mother_occupation=mother.occupation,
        mother_educational_attainment=mother.educational_attainment,
        mother_city=mother.city,
        mother_district=mother.district,
        mother_state=mother.state,
        # Father
        father_dob=father.birth_date,
        father_marital_status=father.marital_status,
        father_occupation=father.occupation,
        father_educational_attainment=father.educational_attainment,
        father_city=father.city,
        father_district=father.district,
        father_state=father.state,
        # Informant
        informant_dob=informant.birth_date,
        informant_marital_status=informant.marital_status,
        informant_occupation=informant.occupation,
        informant_educational_attainment=informant.educational_attainment,
        informant_city=informant.city,
        informant_district=informant.district,
        informant_state=informant.state,
        informant_relationship=informant.relationship,
        # Observations
        birth_plurality_of_pregnancy=obs.birth_plurality_of_pregnancy,
        body_weight_measured=obs.body_weight_measured,
        birth_attendant_title=obs.birth_attendant_title,
        present_at_birth_reg=obs.present_at_birth_reg,
    )


def build_death_row(fc: FullComposition) -> DeathRow:
    """Build the death row.

    The death location columns come from the deceased's own address, and
    ``causeOfDeathEstablished`` is rendered as "Yes"/"No" rather than the code.
    """
    deceased, informant = fc.deceased, fc.informant
    obs = fc.observations
    return DeathRow(
        # Address
        health_center=fc.health_center,
        office_location=fc.office_location,
        death_district=deceased.district,
        death_state=deceased.state,
        death_city=deceased.city,
        # Deceased
        deceased_gen=deceased.gender,
        deceased_dob=deceased.birth_date,
        deceased_marital_status=deceased.marital_status,
        deceased_date=deceased.deceased_date,
        # Informant
        informant_dob=informant.birth_date,
        informant_marital_status=informant.marital_status,
        informant_occupation=informant.occupation,
        informant_city=informant.city,
        informant_district=informant.district,
        informant_state=informant.state,
        informant_relationship=informant.relationship,
        # Observations
        uncertified_manner_of_death=obs.uncertified_manner_of_death,
        verbal_autopsy_description=obs.verbal_autopsy_description,
        cause_of_death_method=obs.cause_of_death_method,
        cause_of_death_established="Yes" if obs.cause_of_death_established else "No",
        cause_of_death=obs.cause_of_death,
        num_male_dependents_on_deceased=obs.num_male_dependents_on_deceased,
        num_female_dependents_on_deceased=obs.num_female_dependents_on_deceased,
    )


def build_row(fc: FullComposition) -> BirthRow | DeathRow:
    """Build the row matching the event type of the aggregate."""
    if fc.event == EventType.BIRTH:
        return build_birth_row(fc)
    return build_death_row(fc)
