"""User Seeding Service.

Replays the user seed metadata of the country configuration against the
gateway. Users that already exist, whose office cannot be resolved, or whose
role has no known role id are skipped and reported; every other user is
created.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from src.domain.ports import SeedError, UserGatewayPort
from src.domain.users import UserSeed

logger = logging.getLogger(__name__)

_USER_SEEDS = TypeAdapter(list[UserSeed])


@dataclass
class SeedReport:
    """Outcome of one seeding run.

    Attributes:
        created: Usernames that were created
        skipped: Username to skip reason
    """
    created: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.skipped)


def parse_user_seeds(raw: object) -> list[UserSeed]:
    """Validate raw seed metadata.

    Raises:
        SeedError: If the metadata does not match the user seed schema
    """
    try:
        return _USER_SEEDS.validate_python(raw)
    except ValidationError as e:
        raise SeedError(f"Error when getting users metadata from country-config: {e.errors()}") from e


class UserSeeder:
    """Seeds users through a UserGatewayPort.

    Parameters:
        gateway: Source of seed metadata and destination of created users
        role_id_map: Display role to role id
    """

    def __init__(self, gateway: UserGatewayPort, role_id_map: dict[str, str]):
        self.gateway = gateway
        self.role_id_map = role_id_map

    def seed(self) -> SeedReport:
        """Seed every user of the metadata.

        Raises:
            SeedError: If fetching the metadata or a gateway call fails
        """
        users = parse_user_seeds(self.gateway.fetch_user_seeds())
        report = SeedReport()

        for user in users:
            office_id, reason = self._check(user)
            if reason is not None:
                logger.info(f"{reason}. Skipping user \"{user.username}\"")
                report.skipped[user.username] = reason
                continue

            payload = user.to_user_input(
                role_id=self.role_id_map[user.role.value],
                primary_office=office_id,
            )
            report.created.append(self.gateway.create_user(payload))
            logger.info(f"Created user \"{user.username}\"")

        logger.info(f"Seeded {len(report.created)} user(s), skipped {len(report.skipped)}")
        return report

    def _check(self, user: UserSeed) -> tuple[Optional[str], Optional[str]]:
        """Resolve the office id of a user, or give the reason to skip it."""
        if self.gateway.user_exists(user.username):
            return None, f"User with the username \"{user.username}\" already exists"

        office_id = self.gateway.office_id_for(user.primary_office_id)
        if not office_id:
            return None, f"No office found with id {user.primary_office_id}"

        if not self.role_id_map.get(user.role.value):
            return None, f"Role \"{user.role.value}\" is not recognized by system"

        return office_id, None
