"""Validation of raw stored documents at the adapter boundary."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.domain.documents import DOCUMENT_MODELS, FhirDocument
from src.domain.ports import DocumentValidationError

logger = logging.getLogger(__name__)


def parse_document(collection: str, raw: Any) -> FhirDocument:
    """Validate one raw document into the model of its collection.

    Parameters:
        collection: Collection the document was read from
        raw: Raw document (dict) as returned by the store

    Returns:
        FhirDocument: Typed document

    Raises:
        DocumentValidationError: If the collection is unknown or the document is malformed
    """
    model = DOCUMENT_MODELS.get(collection)
    if model is None:
        raise DocumentValidationError(f"Unknown collection: {collection}", collection=collection)

    document_id = raw.get("id") if isinstance(raw, dict) else None
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise DocumentValidationError(
            f"Invalid {collection} document {document_id}: {e.error_count()} validation error(s)",
            collection=collection,
            document_id=document_id,
            details=e.errors()
        ) from e


def parse_documents(collection: str, raws: list[Any], skip_invalid: bool = False) -> list[FhirDocument]:
    """Validate a batch of raw documents.

    With ``skip_invalid`` each malformed document is logged and dropped;
    otherwise the first one raises DocumentValidationError.
    """
    documents = []
    for raw in raws:
        try:
            documents.append(parse_document(collection, raw))
        except DocumentValidationError as e:
            if not skip_invalid:
                raise
            logger.warning(
                f"Dropping invalid {collection} document {e.document_id}: {e.details}",
                extra={"collection": collection}
            )
    return documents
