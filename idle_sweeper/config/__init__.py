"""Configuration for idle-sweeper.

Example:
    >>> from idle_sweeper.config import SweeperSettings
    >>> settings = SweeperSettings.from_yaml("idle_sweeper.yaml")
    >>> settings.timers.disqualify_after
    datetime.timedelta(days=7)
"""

from idle_sweeper.config.settings import (
    GitProviderConfig,
    RepositoryConfig,
    SweeperConfig,
    SweeperSettings,
    TimersConfig,
    parse_duration,
)

__all__ = [
    "GitProviderConfig",
    "RepositoryConfig",
    "SweeperConfig",
    "SweeperSettings",
    "TimersConfig",
    "parse_duration",
]
