"""
Configuration package for the skills CLI.

- app.py: AppConfig, LoggingSettings and the load/save helpers
"""

from agent_skills.config.app import (
    AppConfig,
    LoggingSettings,
    get_skills_home,
    load_config,
    save_config,
)

__all__ = [
    "AppConfig",
    "LoggingSettings",
    "get_skills_home",
    "load_config",
    "save_config",
]
