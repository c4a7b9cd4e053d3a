"""Pair REMORES bookings with Canvas submissions."""

from collections.abc import Iterable, Sequence
from typing import Optional

from rapidfuzz.distance import Jaro

from .models import Booking, BookingMatch, Submission

DEFAULT_THRESHOLD = 0.8


def name_similarity(a: str, b: str) -> float:
    """Jaro similarity of two names, from 0.0 to 1.0."""
    return Jaro.similarity(a, b)


def find_exact_match(booking: Booking, submissions: Iterable[Submission]) -> Optional[Submission]:
    """Return the first submission whose user email is the booking's email."""
    for submission in submissions:
        if booking.email.same_identity(submission.user.email):
            return submission
    return None


def find_fuzzy_match(
    booking: Booking,
    pool: list[Submission],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[Submission]:
    """Take the submission whose user name best resembles the booking name.

    The best candidate always leaves the pool, and is returned only when
    its score is strictly above the threshold. Equal scores go to the
    lowest id.
    """
    if not pool:
        return None

    best_index = max(
        range(len(pool)),
        key=lambda i: (name_similarity(booking.name, pool[i].user.name), -pool[i].id),
    )
    best = pool.pop(best_index)
    if name_similarity(booking.name, best.user.name) > threshold:
        return best
    return None


def match_bookings(
    bookings: Sequence[Booking],
    submissions: Sequence[Submission],
    threshold: float = DEFAULT_THRESHOLD,
) -> list[BookingMatch]:
    """Match every booking to at most one submission.

    Each booking first looks for a submission with the same email. Email
    matches do not consume the submission, so a group submission can serve
    several bookings. Bookings without an email match fall back to the most
    similar user name. The best name candidate is taken out of the pool
    whether or not it clears the threshold, and a submission out of the pool
    is no longer available to email matches either.

    Args:
        bookings: Bookings in the order they should be reported
        submissions: All submissions of the assignment
        threshold: Minimum name similarity, exclusive

    Returns:
        One BookingMatch per booking, in input order
    """
    pool = list(submissions)
    matches = []
    for booking in bookings:
        submission = find_exact_match(booking, pool)
        if submission is None:
            submission = find_fuzzy_match(booking, pool, threshold)
        matches.append(BookingMatch(booking=booking, submission=submission))
    return matches
