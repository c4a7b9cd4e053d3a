"""HTML parsers for REMORES responses.

REMORES renders its booking lists from a fixed template with almost no
classes or ids, so rows are located by walking siblings from known
anchors. A reservation-view page looks roughly like:

    <h2>Kursnamn</h2>
    <br>
    <b>24-05-13</b>
    ...
    <tt>10:00</tt> <input type="radio" name="reservation" value="...">Anna Svensson (<a href="mailto:anna@kth.se"><i>anna@kth.se</i></a>)
    <br>

The navigation is kept in the small accessor helpers below so that a
template change fails with a precise BookingParseError instead of
silently dropping rows.
"""

from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from .errors import BookingParseError
from .models import Booking, classify_email

BOOKING_TIME_FORMAT = "%y-%m-%d %H:%M"


def nth_sibling(node: PageElement, n: int, what: str) -> PageElement:
    """Step n siblings forward (n > 0) or backward (n < 0) from node.

    Text nodes count as siblings, exactly like elements.

    Raises:
        BookingParseError: If the chain runs out before n steps
    """
    current: Optional[PageElement] = node
    for _ in range(abs(n)):
        current = current.next_sibling if n > 0 else current.previous_sibling
        if current is None:
            raise BookingParseError(f"No {what}")
    return current


def first_child(node: PageElement, what: str) -> PageElement:
    if not isinstance(node, Tag):
        raise BookingParseError(f"No {what}")
    child = next(iter(node.children), None)
    if child is None:
        raise BookingParseError(f"No {what}")
    return child


def text_of(node: PageElement, what: str) -> str:
    """Return the content of a text node."""
    if not isinstance(node, NavigableString):
        raise BookingParseError(f"No {what} text")
    return str(node)


def nested_text(node: PageElement, depth: int, what: str) -> str:
    """Return the text found by following the first child depth times."""
    for _ in range(depth):
        node = first_child(node, what)
    return text_of(node, what)


def nth_sibling_text(node: PageElement, n: int, what: str) -> str:
    """Return the text of the first child of the nth sibling."""
    return nested_text(nth_sibling(node, n, what), 1, what)


def parse_overview_html(html: str, requester: str) -> list[str]:
    """Find the sub-lists administered by a requester on an overview page.

    Args:
        html: Raw overview fragment
        requester: Requester id, e.g. a KTH id; sub-list values end with it

    Returns:
        Sub-list identifiers in page order
    """
    soup = BeautifulSoup(html, "html.parser")
    sub_lists = []
    for element in soup.find_all("input"):
        value = element.get("value")
        if value and value.endswith(requester):
            sub_lists.append(value)
    return sub_lists


def parse_page_date(soup: BeautifulSoup) -> str:
    """Extract the date shared by every row of a reservation-view page."""
    line_break = soup.find("br")
    if line_break is None:
        raise BookingParseError("No date")
    return nth_sibling_text(line_break, 2, "date").strip()


def parse_booking_time(date_str: str, time_str: str) -> datetime:
    """Combine a YY-MM-DD date and HH:MM time into a UTC instant.

    The page shows local wall-clock times; they are stored as UTC without
    conversion.
    """
    combined = f"{date_str.strip()} {time_str.strip()}"
    try:
        parsed = datetime.strptime(combined, BOOKING_TIME_FORMAT)
    except ValueError as e:
        raise BookingParseError(f"Invalid booking time {combined!r}: {e}") from e
    return parsed.replace(tzinfo=timezone.utc)


def parse_reservation_row(reservation: Tag, date_str: str, email_domain: str) -> Booking:
    """Build a Booking from one <input name="reservation"> element."""
    time_str = nth_sibling_text(reservation, -2, "time for input")

    name_node = nth_sibling(reservation, 1, "name for input")
    name = text_of(name_node, "name for input").strip().removesuffix("(").strip()

    email_node = nth_sibling(name_node, 1, "email for input")
    email = nested_text(email_node, 2, "email for input")

    return Booking(
        time=parse_booking_time(date_str, time_str),
        name=name,
        email=classify_email(email, email_domain),
    )


def parse_reservation_view_html(html: str, email_domain: str) -> list[Booking]:
    """Parse every booked slot on a reservation-view page.

    Args:
        html: Raw reservation-view fragment
        email_domain: Institution mail domain used to classify addresses

    Returns:
        Bookings in page order, duplicates included

    Raises:
        BookingParseError: If any expected node is missing
    """
    soup = BeautifulSoup(html, "html.parser")
    date_str = parse_page_date(soup)
    return [
        parse_reservation_row(reservation, date_str, email_domain)
        for reservation in soup.find_all("input", attrs={"name": "reservation"})
    ]
