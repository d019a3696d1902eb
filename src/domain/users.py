"""User Seed Schema Definitions.

Typed contract for the user seed metadata served by the country configuration
service and for the user payload sent to the gateway when replaying it.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SystemRole(str, Enum):
    FIELD_AGENT = "FIELD_AGENT"
    REGISTRATION_AGENT = "REGISTRATION_AGENT"
    LOCAL_REGISTRAR = "LOCAL_REGISTRAR"
    LOCAL_SYSTEM_ADMIN = "LOCAL_SYSTEM_ADMIN"
    NATIONAL_SYSTEM_ADMIN = "NATIONAL_SYSTEM_ADMIN"
    PERFORMANCE_MANAGEMENT = "PERFORMANCE_MANAGEMENT"
    NATIONAL_REGISTRAR = "NATIONAL_REGISTRAR"


class UserRole(str, Enum):
    FIELD_AGENT = "Field Agent"
    POLICE_OFFICER = "Police Officer"
    LOCAL_LEADER = "Local Leader"
    SOCIAL_WORKER = "Social Worker"
    HEALTHCARE_WORKER = "Healthcare Worker"
    REGISTRATION_AGENT = "Registration Agent"
    LOCAL_REGISTRAR = "Local Registrar"
    LOCAL_SYSTEM_ADMIN = "Local System Admin"
    NATIONAL_SYSTEM_ADMIN = "National System Admin"
    PERFORMANCE_MANAGER = "Performance Manager"
    NATIONAL_REGISTRAR = "National Registrar"


class UserSeed(BaseModel):
    """One user entry of the seed metadata.

    Parameters:
        primary_office_id: Identifier of the user's primary office Location
        given_names: Given names, space separated
        family_name: Family name
        system_role: System-level role
        role: Display role, mapped to a role id when seeding
        username: Unique username
        mobile: Mobile phone number
        email: Email address
        password: Initial password
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    primary_office_id: str = Field(..., alias="primaryOfficeId")
    given_names: str = Field(..., alias="givenNames")
    family_name: str = Field(..., alias="familyName")
    system_role: SystemRole = Field(..., alias="systemRole")
    role: UserRole
    username: str
    mobile: str
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError(f"Invalid email address: {v}")
        return v

    def to_user_input(self, role_id: str, primary_office: str) -> dict:
        """Build the gateway ``UserInput`` payload for this user."""
        return {
            "mobile": self.mobile,
            "email": self.email,
            "password": self.password,
            "systemRole": self.system_role.value,
            "role": role_id,
            "name": [
                {
                    "use": "en",
                    "familyName": self.family_name,
                    "firstNames": self.given_names,
                }
            ],
            "primaryOffice": primary_office,
        }
