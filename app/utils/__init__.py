"""Utility functions."""

from app.utils.time import add_months, format_long_date, format_slot_time, utc_now, utc_today

__all__ = ["utc_now", "utc_today", "add_months", "format_long_date", "format_slot_time"]
