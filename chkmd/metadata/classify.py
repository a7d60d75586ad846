from typing import Optional

from .. import config
from ..models import ClassificationResult, Status
from .resolve import ResolvedFields


def classify(fields: Optional[ResolvedFields], error: Optional[Exception] = None) -> ClassificationResult:
    """
    Decides whether a file is ready for import.

    The minimum bar is a creation date plus either keywords or a description.
    A file whose metadata could not be extracted at all is Rejected; a file
    that was read but falls short of the bar is Incomplete.
    """
    if error is not None or fields is None:
        return ClassificationResult(Status.REJECTED, str(error) if error else "No metadata", error)

    if fields.has_date_created and (fields.has_keywords or fields.has_description):
        return ClassificationResult(Status.ACCEPTED, "")

    return ClassificationResult(Status.INCOMPLETE, config.MINIMUM_METADATA_REASON)
