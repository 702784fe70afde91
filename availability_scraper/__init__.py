"""Appointment availability scraper for the therapy portal."""

__version__ = "0.1.0"
