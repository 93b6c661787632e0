"""
Client for the vehicle registration lookup service.

Sends one multipart POST per (registration number, date) pair and returns
the raw status and body. Classification of the body happens elsewhere.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
import httpx
import structlog

from config import settings

logger = structlog.get_logger()


@dataclass
class QueryOutcome:
    """Result of a single lookup request."""
    success: bool
    identifier: str
    day: date
    status_code: Optional[int] = None
    body: str = ""
    error: Optional[str] = None


class QueryClient:
    """
    Issues lookup requests against the registration service.

    One request per call, fixed timeout, no retries. A response with any
    status code counts as received; only a missing response is a failure.
    """

    DEFAULT_HEADERS = {
        "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
        "Accept": "text/html,*/*",
    }

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize query client.

        Args:
            url: Service endpoint. Uses config default if not provided.
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used by tests)
        """
        self.url = url or settings.SERVICE_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.transport = transport

        logger.info("QueryClient initialized", url=self.url, timeout=self.timeout)

    def build_form(self, identifier: str, day: date) -> dict:
        """Multipart fields for one lookup: two plain-text parts, no file names."""
        return {
            settings.IDENTIFIER_FIELD: (None, identifier, "text/plain"),
            settings.DATE_FIELD: (None, day.isoformat(), "text/plain"),
        }

    def query(self, identifier: str, day: date) -> QueryOutcome:
        """
        Look up a registration number for one date.

        Args:
            identifier: Normalized registration number
            day: Registration date to try

        Returns:
            QueryOutcome with status and body, or the transport error
        """
        logger.debug("Querying registration service", identifier=identifier, day=day.isoformat())

        try:
            with httpx.Client(
                timeout=self.timeout,
                headers=self.DEFAULT_HEADERS,
                transport=self.transport
            ) as client:
                response = client.post(self.url, files=self.build_form(identifier, day))

                return QueryOutcome(
                    success=True,
                    identifier=identifier,
                    day=day,
                    status_code=response.status_code,
                    body=response.text
                )

        except httpx.TimeoutException as e:
            logger.warning("Lookup timeout", identifier=identifier, day=day.isoformat(), error=str(e))
            return QueryOutcome(
                success=False,
                identifier=identifier,
                day=day,
                error=f"Timeout: {str(e)}"
            )
        except httpx.HTTPError as e:
            logger.warning("Lookup failed", identifier=identifier, day=day.isoformat(), error=str(e))
            return QueryOutcome(
                success=False,
                identifier=identifier,
                day=day,
                error=str(e) or e.__class__.__name__
            )
