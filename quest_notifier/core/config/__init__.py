"""
Configuration subsystem for the quest notification engine.

- **config.py**: static configuration from environment variables
- **manager.py**: YAML-backed notification copy and emoji tables

`ConfigManager` is imported from its module directly; it depends on the
logging subsystem, which itself reads `Config` during bootstrap.
"""

from quest_notifier.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
