"""Scheduled "due within the hour" reminders."""
