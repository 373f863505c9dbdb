"""Tests for idle_sweeper/providers/factory.py - tracker factory."""

import pytest
from pydantic import SecretStr

from idle_sweeper.config.settings import GitProviderConfig, RepositoryConfig, SweeperConfig, SweeperSettings
from idle_sweeper.exceptions import ConfigurationError
from idle_sweeper.providers.factory import create_tracker
from idle_sweeper.providers.gitea_rest import GiteaRestProvider
from idle_sweeper.providers.github_rest import GitHubRestProvider


def _settings(provider_type: str, base_url: str, page_size: int = 100) -> SweeperSettings:
    return SweeperSettings(
        git_provider=GitProviderConfig(
            provider_type=provider_type,
            base_url=base_url,
            api_token=SecretStr("test-token-123"),
        ),
        repository=RepositoryConfig(owner="test-owner", name="test-repo"),
        sweeper=SweeperConfig(page_size=page_size),
    )


class TestCreateTracker:
    def test_create_github_tracker(self) -> None:
        tracker = create_tracker(_settings("github", "https://api.github.com", page_size=30))

        assert isinstance(tracker, GitHubRestProvider)
        assert tracker.base_url == "https://api.github.com"
        assert tracker.token == "test-token-123"
        assert tracker.owner == "test-owner"
        assert tracker.repo == "test-repo"
        assert tracker.page_size == 30

    def test_create_gitea_tracker(self) -> None:
        tracker = create_tracker(_settings("gitea", "https://gitea.example.com"))

        assert isinstance(tracker, GiteaRestProvider)
        assert tracker.base_url == "https://gitea.example.com"
        assert tracker.token == "test-token-123"

    def test_gitea_page_size_capped(self) -> None:
        tracker = create_tracker(_settings("gitea", "https://gitea.example.com", page_size=100))

        assert tracker.page_size == 50

    def test_unsupported_provider(self) -> None:
        settings = _settings("github", "https://api.github.com")
        settings.git_provider.provider_type = "gitlab"

        with pytest.raises(ConfigurationError, match="Unsupported Git provider type: gitlab"):
            create_tracker(settings)
