"""Download Canvas submissions matched to REMORES bookings."""

__version__ = "0.1.0"
