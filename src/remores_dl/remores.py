"""REMORES HTTP client for reading booking lists."""

import logging
from typing import Any, Optional

import httpx

from .config import DEFAULT_EMAIL_DOMAIN, DEFAULT_REMORES_URL
from .errors import RemoresAPIError
from .models import Booking
from .parsers import parse_overview_html, parse_reservation_view_html

logger = logging.getLogger(__name__)

# Submit-button value the reservation-view form sends
RESERVATION_VIEW_VERB = "+Hämta+bokningslista+"


class RemoresClient:
    """HTTP client for the REMORES booking system of one repository."""

    def __init__(
        self,
        repository: str,
        url: str = DEFAULT_REMORES_URL,
        email_domain: str = DEFAULT_EMAIL_DOMAIN,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the REMORES client.

        Args:
            repository: REMORES repository name (e.g., adk-mastarprov)
            url: Address of the REMORES decoder endpoint
            email_domain: Institution mail domain used to classify addresses
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.repository = repository
        self.url = url
        self.email_domain = email_domain
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "text/html"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, **kwargs: Any) -> str:
        """Send a request to the decoder endpoint and return the body text.

        Raises:
            RemoresAPIError: If the request fails or returns an error status
        """
        client = await self._get_client()
        try:
            response = await client.request(method, self.url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoresAPIError(f"Request to REMORES failed: {e}") from e
        return response.text

    async def get_sub_lists(self, requester: str) -> list[str]:
        """Discover the sub-lists a requester administers.

        Args:
            requester: Requester id, e.g. "asalamon"

        Returns:
            Sub-list identifiers in the order the overview lists them
        """
        html = await self._request(
            "GET",
            params={
                "request:overview": "yes",
                "repository": self.repository,
                "shownameemail": "yes",
            },
        )
        sub_lists = parse_overview_html(html, requester)
        logger.debug("Found %d sub-lists for %s in %s", len(sub_lists), requester, self.repository)
        return sub_lists

    async def get_sub_list(self, sub_list: str) -> list[Booking]:
        """Fetch and parse the bookings of one sub-list.

        Raises:
            RemoresAPIError: If the request fails
            BookingParseError: If the page does not match the expected template
        """
        html = await self._request(
            "POST",
            data={
                "event": sub_list,
                "request:reservation-view": RESERVATION_VIEW_VERB,
                "shownameemail": "yes",
                "repository": self.repository,
            },
        )
        bookings = parse_reservation_view_html(html, self.email_domain)
        logger.debug("Parsed %d bookings from sub-list %s", len(bookings), sub_list)
        return bookings

    async def get_bookings_for(self, requester: str) -> list[Booking]:
        """Get every booking in the sub-lists administered by a requester.

        Sub-lists are fetched one at a time and concatenated in discovery
        order. Any failure aborts the whole call.

        Args:
            requester: Requester id, e.g. "asalamon"

        Returns:
            All bookings, duplicates included
        """
        bookings: list[Booking] = []
        for sub_list in await self.get_sub_lists(requester):
            bookings.extend(await self.get_sub_list(sub_list))
        return bookings
