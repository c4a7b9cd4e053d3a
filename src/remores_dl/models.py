"""Data models for bookings, Canvas submissions and download results."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class _EmailAddress:
    address: str

    def __str__(self) -> str:
        return self.address

    def same_identity(self, raw: str) -> bool:
        """Check whether a raw platform address names the same person."""
        return self.address.strip().casefold() == raw.strip().casefold()


@dataclass(frozen=True)
class InstitutionalEmail(_EmailAddress):
    """An address on the institution's own mail domain."""


@dataclass(frozen=True)
class OtherEmail(_EmailAddress):
    """Any other address (private mail providers etc.)."""


Email = Union[InstitutionalEmail, OtherEmail]


def classify_email(address: str, domain: str) -> Email:
    """Tag an address as institutional or other.

    Args:
        address: Raw email address as it appears on the booking page
        domain: Institution mail domain, e.g. "kth.se"

    Returns:
        InstitutionalEmail if the address ends with "@<domain>", else OtherEmail
    """
    address = address.strip()
    if address.lower().endswith("@" + domain.lower().lstrip("@")):
        return InstitutionalEmail(address)
    return OtherEmail(address)


@dataclass(frozen=True)
class Booking:
    """A reserved slot in a REMORES booking list."""

    time: datetime
    name: str
    email: Email

    def __str__(self) -> str:
        return f"{self.time.strftime('%Y-%m-%d %H:%M')} {self.name} <{self.email}>"


@dataclass
class User:
    """A Canvas user as embedded in a submission."""

    name: str
    email: str  # login_id, not classified

    def __str__(self) -> str:
        return f"{self.name} ({self.email})"


@dataclass
class Attachment:
    """A file attached to a submission."""

    url: str
    display_name: str


@dataclass
class Submission:
    """A Canvas submission for one assignment."""

    id: int
    user: User
    attachments: Optional[list[Attachment]] = None


@dataclass
class Enrollment:
    type: str


@dataclass
class Course:
    """A Canvas course."""

    id: int
    name: str
    created_at: Optional[datetime] = None
    enrollments: list[Enrollment] = field(default_factory=list)

    @property
    def is_staff(self) -> bool:
        """True if the current user is enrolled as anything but a student."""
        return any(e.type != "student" for e in self.enrollments)


@dataclass
class Assignment:
    """A Canvas assignment."""

    id: int
    name: str
    due_at: Optional[datetime] = None
    published: bool = False
    grading_type: str = ""


@dataclass
class BookingMatch:
    """A booking paired with the submission it was matched to, if any."""

    booking: Booking
    submission: Optional[Submission] = None

    @property
    def matched(self) -> bool:
        return self.submission is not None


@dataclass
class DownloadFailure:
    """A download that could not be completed."""

    submission_id: int
    user: str
    reason: str
    attachment: Optional[str] = None


@dataclass
class SubmissionDownload:
    """Files written for one submission."""

    submission_id: int
    paths: list[Path] = field(default_factory=list)
    failures: list[DownloadFailure] = field(default_factory=list)


@dataclass
class DownloadReport:
    """Outcome of downloading every matched submission."""

    paths: list[Path] = field(default_factory=list)
    failures: list[DownloadFailure] = field(default_factory=list)
