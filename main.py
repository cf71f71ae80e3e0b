"""
Cloud Functions for Firebase source entry point.

The Python runtime loads `main.py` from the functions source directory;
the deployed functions are defined in `quest_notifier.main`.
"""

from quest_notifier.main import (  # noqa: F401
    on_quest_created,
    on_quest_template_created,
    send_daily_digest,
    sweep_deadlines,
)
