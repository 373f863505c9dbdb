"""Hosting platform trackers.

Example:
    >>> from idle_sweeper.providers import create_tracker
    >>> tracker = create_tracker(settings)
"""

from idle_sweeper.providers.base import IssueTracker
from idle_sweeper.providers.factory import create_tracker
from idle_sweeper.providers.gitea_rest import GiteaRestProvider
from idle_sweeper.providers.github_rest import GitHubRestProvider

__all__ = ["GiteaRestProvider", "GitHubRestProvider", "IssueTracker", "create_tracker"]
