"""Pushes for quests and templates assigned at creation."""
