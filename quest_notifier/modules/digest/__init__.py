"""Hourly morning digest."""
