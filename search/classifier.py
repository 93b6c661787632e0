"""
Classification of raw lookup responses.

The registration service has no structured not-found response: an empty
result is an HTML page carrying two fixed phrases. Anything else returned
with status 200 is treated as a record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config import settings
from fetcher.registration_client import QueryOutcome


class ClassificationKind(str, Enum):
    """Outcome categories for a single lookup."""
    NO_MATCH = "no_match"
    MATCH = "match"
    TRANSPORT_ERROR = "transport_error"
    PROTOCOL_ERROR = "protocol_error"


@dataclass(frozen=True)
class Classification:
    """Classified lookup outcome."""
    kind: ClassificationKind
    status_code: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        """True when this outcome ends the whole search."""
        return self.kind in (ClassificationKind.MATCH, ClassificationKind.PROTOCOL_ERROR)


class ResponseClassifier:
    """Maps a QueryOutcome to a Classification."""

    SUCCESS_STATUS = 200
    NO_RECORD_PHRASE = "NO RECORD FOUND"
    CONTACT_PHRASE = "PLEASE CONTACT EXCISE"

    def __init__(
        self,
        no_record_phrase: Optional[str] = None,
        contact_phrase: Optional[str] = None
    ):
        self.no_record_phrase = (no_record_phrase or self.NO_RECORD_PHRASE).upper()
        self.contact_phrase = (contact_phrase or self.CONTACT_PHRASE).upper()

    def is_empty_result(self, body: str) -> bool:
        """True if the body is the service's "no record" template."""
        text = body.upper()
        return self.no_record_phrase in text and self.contact_phrase in text

    def classify(self, outcome: QueryOutcome) -> Classification:
        if outcome.status_code is None:
            return Classification(ClassificationKind.TRANSPORT_ERROR)

        if outcome.status_code != self.SUCCESS_STATUS:
            return Classification(ClassificationKind.PROTOCOL_ERROR, outcome.status_code)

        if self.is_empty_result(outcome.body):
            return Classification(ClassificationKind.NO_MATCH, outcome.status_code)

        return Classification(ClassificationKind.MATCH, outcome.status_code)


default_classifier = ResponseClassifier()


def classify(outcome: QueryOutcome) -> Classification:
    """Classify with the default signature phrases."""
    return default_classifier.classify(outcome)


def body_preview(body: str, limit: Optional[int] = None) -> str:
    """First ``limit`` characters of a body with whitespace runs collapsed."""
    limit = limit if limit is not None else settings.PREVIEW_CHARS
    return " ".join(body[:limit].split())
