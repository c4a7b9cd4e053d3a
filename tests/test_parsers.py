"""Tests for the REMORES HTML parsers."""

from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

from remores_dl.errors import BookingParseError
from remores_dl.models import InstitutionalEmail, OtherEmail
from remores_dl.parsers import (
    first_child,
    nested_text,
    nth_sibling,
    nth_sibling_text,
    parse_booking_time,
    parse_overview_html,
    parse_reservation_view_html,
    text_of,
)


# ── Accessors ──────────────────────────────────────────────────────────────────


class TestAccessors:
    @pytest.fixture
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup("<b>one</b>two<i><u>three</u></i>", "html.parser")

    def test_nth_sibling_forward(self, soup: BeautifulSoup) -> None:
        assert nth_sibling(soup.b, 1, "x") == "two"
        assert nth_sibling(soup.b, 2, "x") is soup.i

    def test_nth_sibling_backward(self, soup: BeautifulSoup) -> None:
        assert nth_sibling(soup.i, -2, "x") is soup.b

    def test_nth_sibling_runs_out(self, soup: BeautifulSoup) -> None:
        with pytest.raises(BookingParseError, match="No widget"):
            nth_sibling(soup.i, 1, "widget")

    def test_first_child_of_text_node_fails(self, soup: BeautifulSoup) -> None:
        with pytest.raises(BookingParseError):
            first_child(nth_sibling(soup.b, 1, "x"), "child")

    def test_first_child_of_empty_tag_fails(self) -> None:
        soup = BeautifulSoup("<b></b>", "html.parser")
        with pytest.raises(BookingParseError):
            first_child(soup.b, "child")

    def test_text_of_requires_text_node(self, soup: BeautifulSoup) -> None:
        with pytest.raises(BookingParseError, match="No name text"):
            text_of(soup.b, "name")

    def test_nested_text(self, soup: BeautifulSoup) -> None:
        assert nested_text(soup.i, 2, "x") == "three"

    def test_nested_text_too_shallow(self, soup: BeautifulSoup) -> None:
        with pytest.raises(BookingParseError):
            nested_text(soup.i, 1, "x")

    def test_nth_sibling_text(self, soup: BeautifulSoup) -> None:
        assert nth_sibling_text(soup.i, -2, "x") == "one"


# ── Overview ───────────────────────────────────────────────────────────────────


class TestParseOverview:
    def test_returns_values_ending_with_requester(self, overview_html: str) -> None:
        assert parse_overview_html(overview_html, "asalamon") == [
            "adk-mastarprov-240513-asalamon",
            "adk-mastarprov-240520-asalamon",
        ]

    def test_no_match(self, overview_html: str) -> None:
        assert parse_overview_html(overview_html, "nobody") == []

    def test_inputs_without_value_are_ignored(self) -> None:
        assert parse_overview_html('<input type="checkbox"><input value="x-me">', "me") == ["x-me"]


# ── Reservation view ───────────────────────────────────────────────────────────


class TestParseReservationView:
    def test_two_rows(self, reservation_view_html: str) -> None:
        bookings = parse_reservation_view_html(reservation_view_html, "kth.se")

        assert len(bookings) == 2
        anna, bob = bookings
        assert anna.time == datetime(2024, 5, 13, 10, 0, tzinfo=timezone.utc)
        assert anna.name == "Anna Svensson"
        assert anna.email == InstitutionalEmail("anna@kth.se")
        assert bob.time == datetime(2024, 5, 13, 10, 20, tzinfo=timezone.utc)
        assert bob.name == "Bob Berg"
        assert bob.email == OtherEmail("bob@gmail.com")

    def test_duplicate_rows_are_kept(self) -> None:
        row = '<tt>10:00</tt> <input name="reservation">Anna (<a><i>anna@kth.se</i></a>)\n'
        html = "<br>\n<b>24-05-13</b>\n" + row + row
        bookings = parse_reservation_view_html(html, "kth.se")
        assert len(bookings) == 2
        assert bookings[0] == bookings[1]

    def test_page_without_reservations(self) -> None:
        assert parse_reservation_view_html("<br>\n<b>24-05-13</b>\n", "kth.se") == []

    def test_missing_line_break(self) -> None:
        with pytest.raises(BookingParseError, match="No date"):
            parse_reservation_view_html("<b>24-05-13</b>", "kth.se")

    def test_missing_date_node(self) -> None:
        with pytest.raises(BookingParseError, match="No date"):
            parse_reservation_view_html("<b>x</b><br>", "kth.se")

    def test_missing_time(self) -> None:
        html = '<br>\n<b>24-05-13</b><input name="reservation">Anna (<a><i>anna@kth.se</i></a>)'
        with pytest.raises(BookingParseError, match="time"):
            parse_reservation_view_html(html, "kth.se")

    def test_missing_email(self) -> None:
        html = '<br>\n<b>24-05-13</b>\n<tt>10:00</tt> <input name="reservation">Anna ('
        with pytest.raises(BookingParseError, match="email"):
            parse_reservation_view_html(html, "kth.se")

    def test_name_is_not_text(self) -> None:
        html = '<br>\n<b>24-05-13</b>\n<tt>10:00</tt> <input name="reservation"><b>Anna</b><a><i>a@kth.se</i></a>'
        with pytest.raises(BookingParseError, match="name"):
            parse_reservation_view_html(html, "kth.se")

    def test_unparseable_time(self) -> None:
        html = '<br>\n<b>24-05-13</b>\n<tt>soon</tt> <input name="reservation">Anna (<a><i>a@kth.se</i></a>)'
        with pytest.raises(BookingParseError, match="Invalid booking time"):
            parse_reservation_view_html(html, "kth.se")


class TestParseBookingTime:
    def test_two_digit_year(self) -> None:
        assert parse_booking_time("24-05-13", "09:05") == datetime(2024, 5, 13, 9, 5, tzinfo=timezone.utc)

    def test_surrounding_whitespace(self) -> None:
        assert parse_booking_time(" 24-05-13\n", " 14:40 ").hour == 14

    def test_four_digit_year_rejected(self) -> None:
        with pytest.raises(BookingParseError):
            parse_booking_time("2024-05-13", "09:05")
