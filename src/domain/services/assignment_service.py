"""Assignment Service.

Adds or removes the "assignment" on the search document of one record. The
record is identified by the Task of a saved bundle; the assigning user and
office come from the Task's last-user and last-office extensions.

Architecture:
    - Depends only on the SearchIndexPort and UserDirectoryPort contracts
    - One upsert per call, no retries
"""

import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from src.domain.documents import Location, Task, find_extension, reference_id
from src.domain.ports import ResolutionError, Result, SearchIndexPort, UserDirectoryPort
from src.domain.services.composition_resolver import OFFICE_LOCATION_EXTENSION_URL

logger = logging.getLogger(__name__)

LAST_USER_EXTENSION_URL = "http://opencrvs.org/specs/extension/regLastUser"
NAME_EN = "en"


def bundle_resources(bundle: dict, resource_type: str) -> list[dict]:
    """Resources of the given type contained in a saved bundle."""
    return [
        entry["resource"]
        for entry in bundle.get("entry") or []
        if isinstance(entry, dict)
        and isinstance(entry.get("resource"), dict)
        and entry["resource"].get("resourceType") == resource_type
    ]


def task_from_bundle(bundle: dict) -> Task:
    tasks = bundle_resources(bundle, "Task")
    if not tasks:
        raise ResolutionError("No Task found in bundle")
    try:
        return Task.model_validate(tasks[0])
    except ValidationError as e:
        raise ResolutionError(f"Invalid Task in bundle: {e.error_count()} validation error(s)") from e


def last_office_from_bundle(bundle: dict, task: Task) -> Optional[Location]:
    """Location of the Task's last-office extension, if the bundle carries it."""
    extension = find_extension(task.extension, OFFICE_LOCATION_EXTENSION_URL)
    if extension is None or extension.value_reference is None:
        return None
    office_id = reference_id(extension.value_reference.reference, "Location")
    for resource in bundle_resources(bundle, "Location"):
        if resource.get("id") == office_id:
            try:
                return Location.model_validate(resource)
            except ValidationError as e:
                raise ResolutionError(
                    f"Invalid office Location in bundle: {e.error_count()} validation error(s)",
                    reference=office_id
                ) from e
    return None


def composition_id_of(task: Task) -> str:
    reference = task.focus.reference if task.focus else None
    composition_id = reference.split("/")[1] if reference and "/" in reference else None
    if not composition_id:
        raise ResolutionError("No Composition ID found", reference=reference)
    return composition_id


def last_user_id_of(task: Task) -> Optional[str]:
    extension = find_extension(task.extension, LAST_USER_EXTENSION_URL)
    if extension is None or extension.value_reference is None:
        return None
    reference = extension.value_reference.reference
    if not reference or "/" not in reference:
        return None
    return reference.split("/")[1] or None


def find_name(names: list[dict], use: str) -> Optional[dict]:
    return next((name for name in names if name.get("use") == use), None)


def epoch_millis() -> str:
    return str(int(time.time() * 1000))


class AssignmentService:
    """Maintains the assignment block of search documents.

    Parameters:
        search_index: Destination of the search documents
        users: Directory used to look up the assigning user's name
        clock: Returns the modification timestamp (epoch milliseconds string)

    Example Usage:
        ```python
        service = AssignmentService(store, UserManagementClient(settings.user_management_url))
        result = service.add_assignment(bundle, authorization="Bearer ...")
        ```
    """

    def __init__(
        self,
        search_index: SearchIndexPort,
        users: UserDirectoryPort,
        clock: Callable[[], str] = epoch_millis
    ):
        self.search_index = search_index
        self.users = users
        self.clock = clock

    def add_assignment(self, bundle: dict, authorization: Optional[str] = None) -> Result[str]:
        """Assign the record of ``bundle`` to its last user.

        Raises:
            ResolutionError: If the bundle has no Task or no Composition id
        """
        task = task_from_bundle(bundle)
        composition_id = composition_id_of(task)
        user_id = last_user_id_of(task)
        office = last_office_from_bundle(bundle, task)

        first_name = ""
        last_name = ""
        user = self.users.get_user(user_id or "", authorization)
        name = find_name(user.get("name") or [], NAME_EN) if user else None
        if name:
            first_name = " ".join(name.get("given") or [])
            last_name = name.get("family") or ""

        body = {
            "compositionId": composition_id,
            "modifiedAt": self.clock(),
            "assignment": {
                "officeName": (office.name if office else None) or "",
                "practitionerId": user_id,
                "firstName": first_name,
                "lastName": last_name,
            },
            "updatedBy": user_id,
        }
        logger.info(f"Assigning composition {composition_id} to practitioner {user_id}")
        return self.search_index.upsert_search_document(composition_id, body)

    def remove_assignment(self, bundle: dict) -> Result[str]:
        """Clear the assignment of the record of ``bundle``.

        Raises:
            ResolutionError: If the bundle has no Task or no Composition id
        """
        task = task_from_bundle(bundle)
        composition_id = composition_id_of(task)
        body = {
            "compositionId": composition_id,
            "modifiedAt": self.clock(),
            "assignment": None,
            "updatedBy": last_user_id_of(task),
        }
        logger.info(f"Removing assignment of composition {composition_id}")
        return self.search_index.upsert_search_document(composition_id, body)
