"""Factory for creating tracker instances based on configuration."""

import structlog

from idle_sweeper.config.settings import SweeperSettings
from idle_sweeper.exceptions import ConfigurationError
from idle_sweeper.providers.base import IssueTracker
from idle_sweeper.providers.gitea_rest import GiteaRestProvider
from idle_sweeper.providers.github_rest import GitHubRestProvider

log = structlog.get_logger(__name__)


def create_tracker(settings: SweeperSettings) -> IssueTracker:
    """Create the tracker matching ``git_provider.provider_type``.

    Raises:
        ConfigurationError: If provider type is not supported

    Example:
        >>> settings = SweeperSettings.from_yaml("idle_sweeper.yaml")
        >>> async with create_tracker(settings) as tracker:
        ...     issues = await tracker.get_assigned_issues()
    """
    provider_type = settings.git_provider.provider_type
    base_url = str(settings.git_provider.base_url)
    token = settings.git_provider.api_token.get_secret_value()

    if provider_type == "gitea":
        log.info("creating_gitea_provider", base_url=base_url)
        return GiteaRestProvider(
            base_url=base_url,
            token=token,
            owner=settings.repository.owner,
            repo=settings.repository.name,
            page_size=min(settings.sweeper.page_size, 50),
        )

    if provider_type == "github":
        log.info("creating_github_provider", base_url=base_url)
        return GitHubRestProvider(
            token=token,
            owner=settings.repository.owner,
            repo=settings.repository.name,
            base_url=base_url,
            page_size=settings.sweeper.page_size,
        )

    raise ConfigurationError(f"Unsupported Git provider type: {provider_type}. Supported types: gitea, github")
