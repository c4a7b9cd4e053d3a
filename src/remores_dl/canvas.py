"""Canvas REST client for courses, assignments and submissions."""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from .config import DEFAULT_CANVAS_API_URL
from .errors import CanvasAPIError, NoAttachmentsError
from .matching import DEFAULT_THRESHOLD, match_bookings
from .models import (
    Assignment,
    Attachment,
    Booking,
    BookingMatch,
    Course,
    DownloadFailure,
    DownloadReport,
    Enrollment,
    Submission,
    SubmissionDownload,
    User,
)

logger = logging.getLogger(__name__)

GRADE_KEYS = ("pass_fail", "points", "letter_grade")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a Canvas ISO 8601 timestamp such as 2024-05-13T10:00:00Z."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _course_from_json(data: dict) -> Course:
    return Course(
        id=data["id"],
        name=data.get("name", ""),
        created_at=_parse_timestamp(data.get("created_at")),
        enrollments=[Enrollment(type=e["type"]) for e in data.get("enrollments") or []],
    )


def _assignment_from_json(data: dict) -> Assignment:
    return Assignment(
        id=data["id"],
        name=data.get("name", ""),
        due_at=_parse_timestamp(data.get("due_at")),
        published=bool(data.get("published", False)),
        grading_type=data.get("grading_type") or "",
    )


def _submission_from_json(data: dict) -> Submission:
    user = data["user"]
    attachments = data.get("attachments")
    return Submission(
        id=data["id"],
        user=User(name=user["name"], email=user["login_id"]),
        attachments=(
            [Attachment(url=a["url"], display_name=a["display_name"]) for a in attachments]
            if attachments is not None
            else None
        ),
    )


def booking_file_prefix(booking: Booking, submission: Submission) -> str:
    """Prefix for downloaded files, e.g. "202405131000-Anna Svensson"."""
    return f"{booking.time.strftime('%Y%m%d%H%M')}-{submission.user.name}"


class CanvasClient:
    """HTTP client for the Canvas REST API."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_CANVAS_API_URL,
        per_page: int = 100,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Canvas client.

        Args:
            api_token: Canvas access token, sent as a bearer token
            base_url: API root (e.g., https://canvas.kth.se/api/v1)
            per_page: Page size requested from paginated endpoints
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                follow_redirects=True,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Make a request to Canvas.

        Args:
            method: HTTP method
            url: Path relative to the API root, or an absolute URL
            **kwargs: Additional arguments for httpx

        Raises:
            CanvasAPIError: If the request fails or returns an error status
        """
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CanvasAPIError(f"Request to {url} failed: {e}") from e
        return response

    async def get_paginated(self, path: str, params: Optional[dict[str, Any]] = None) -> list[Any]:
        """Collect every item of a paginated collection.

        Follows the rel="next" entry of the Link header until a page has
        none. Items keep the server's order.

        Args:
            path: Collection path, e.g. "/courses"
            params: Extra query parameters for the first request

        Returns:
            Items of all pages, concatenated

        Raises:
            CanvasAPIError: If any page fails or is not a JSON array
        """
        items: list[Any] = []
        url = path
        page_params: Optional[dict[str, Any]] = {"per_page": self.per_page, **(params or {})}

        while True:
            response = await self._request("GET", url, params=page_params)
            try:
                page = response.json()
            except ValueError as e:
                raise CanvasAPIError(f"Failed to parse response from {url}: {e}") from e
            if not isinstance(page, list):
                raise CanvasAPIError(f"Expected a list from {url}, got {type(page).__name__}")
            items.extend(page)

            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                break
            logger.debug("Following next page %s", next_url)
            # The next link already carries the query string
            url, page_params = next_url, None

        return items

    async def get_courses(self) -> list[Course]:
        """Get courses where the user is a teacher or TA, newest first."""
        data = await self.get_paginated("/courses")
        try:
            courses = [_course_from_json(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise CanvasAPIError(f"Failed to parse courses: {e}") from e

        courses = [c for c in courses if c.is_staff]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        courses.sort(key=lambda c: c.created_at or oldest, reverse=True)
        return courses

    async def get_assignments(self, course_id: Union[int, str]) -> list[Assignment]:
        """Get published, gradable assignments of a course, by due date."""
        data = await self.get_paginated(f"/courses/{course_id}/assignments")
        try:
            assignments = [_assignment_from_json(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise CanvasAPIError(f"Failed to parse assignments: {e}") from e

        assignments = [a for a in assignments if a.published and a.grading_type in GRADE_KEYS]
        now = datetime.now(timezone.utc)
        assignments.sort(key=lambda a: a.due_at or now)
        return assignments

    async def get_submissions(
        self, course_id: Union[int, str], assignment_id: Union[int, str]
    ) -> list[Submission]:
        """Get every submission of an assignment with its user embedded."""
        data = await self.get_paginated(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions",
            params={"include[]": "user"},
        )
        try:
            return [_submission_from_json(item) for item in data]
        except (KeyError, TypeError) as e:
            raise CanvasAPIError(f"Failed to parse submissions: {e}") from e

    async def get_assignment_submissions(
        self,
        course_id: Union[int, str],
        assignment_id: Union[int, str],
        bookings: Sequence[Booking],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> list[BookingMatch]:
        """Fetch an assignment's submissions and match them to bookings.

        Returns:
            One BookingMatch per booking, in booking order
        """
        submissions = await self.get_submissions(course_id, assignment_id)
        logger.debug(
            "Matching %d bookings against %d submissions", len(bookings), len(submissions)
        )
        return match_bookings(bookings, submissions, threshold)

    async def _download_file(self, url: str, path: Path) -> None:
        """Stream a remote file to path.

        Raises:
            CanvasAPIError: If the request fails
            OSError: If the file cannot be written

        No partial file is left behind in either case.
        """
        client = await self._get_client()
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with open(path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            path.unlink(missing_ok=True)
            raise CanvasAPIError(f"Download of {url} failed: {e}") from e
        except OSError:
            path.unlink(missing_ok=True)
            raise

    async def download_submission(
        self, submission: Submission, folder: Union[str, Path], file_name: str
    ) -> SubmissionDownload:
        """Download all attachments of a submission.

        Each attachment is written to "<folder>/<file_name>-<display name>".
        A failing attachment is recorded and the rest are still attempted.

        Raises:
            NoAttachmentsError: If the submission has no attachments
        """
        if not submission.attachments:
            raise NoAttachmentsError(f"No attachments found for submission {submission.id}")

        result = SubmissionDownload(submission_id=submission.id)
        for attachment in submission.attachments:
            path = Path(folder) / f"{file_name}-{attachment.display_name}"
            try:
                await self._download_file(attachment.url, path)
            except (CanvasAPIError, OSError) as e:
                logger.warning("Failed to download %s for %s: %s", attachment.display_name, submission.user, e)
                result.failures.append(
                    DownloadFailure(
                        submission_id=submission.id,
                        user=str(submission.user),
                        reason=str(e),
                        attachment=attachment.display_name,
                    )
                )
                continue
            result.paths.append(path)
        return result

    async def download_matches(
        self, matches: Sequence[BookingMatch], folder: Union[str, Path]
    ) -> DownloadReport:
        """Download the attachments of every matched booking.

        The folder is created if needed. Unmatched bookings are skipped and a
        failing submission does not stop the others.
        """
        folder = Path(folder)
        folder.mkdir(parents=True, exist_ok=True)

        report = DownloadReport()
        for match in matches:
            submission = match.submission
            if submission is None:
                continue
            try:
                result = await self.download_submission(
                    submission, folder, booking_file_prefix(match.booking, submission)
                )
            except NoAttachmentsError as e:
                logger.warning("Failed to download submission %s: %s", submission.user, e)
                report.failures.append(
                    DownloadFailure(submission_id=submission.id, user=str(submission.user), reason=str(e))
                )
                continue
            report.paths.extend(result.paths)
            report.failures.extend(result.failures)
        return report
