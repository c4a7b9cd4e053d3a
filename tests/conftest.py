"""Shared pytest fixtures."""

import pytest

from remores_dl.models import Attachment, Booking

from .factories import make_booking

OVERVIEW_HTML = """\
<h2>Bokningslistor</h2>
<form method="post">
<input type="hidden" name="event" value="adk-mastarprov-240513-asalamon">
<input type="submit" name="request:reservation-view" value="Visa">
<input type="hidden" name="event" value="adk-mastarprov-240514-viggo">
<input type="hidden" name="event" value="adk-mastarprov-240520-asalamon">
</form>
"""

RESERVATION_VIEW_HTML = """\
<h2>ADK mästarprov</h2>
<br>
<b>24-05-13</b>
<tt>10:00</tt> <input type="radio" name="reservation" value="1">Anna Svensson (<a href="mailto:anna@kth.se"><i>anna@kth.se</i></a>)
<br>
<tt>10:20</tt> <input type="radio" name="reservation" value="2">Bob Berg (<a href="mailto:bob@gmail.com"><i>bob@gmail.com</i></a>)
<br>
"""


@pytest.fixture
def overview_html() -> str:
    return OVERVIEW_HTML


@pytest.fixture
def reservation_view_html() -> str:
    return RESERVATION_VIEW_HTML


@pytest.fixture
def anna_booking() -> Booking:
    return make_booking("Anna Svensson", "anna@kth.se")


@pytest.fixture
def pdf_attachment() -> Attachment:
    return Attachment(url="https://files.test/anna.pdf", display_name="report.pdf")
