"""Exception hierarchy for idle-sweeper.

Exception Hierarchy:
    IdleSweeperError (base)
    ├── ConfigurationError
    ├── DataIntegrityError
    └── ExternalServiceError
        ├── TransientFetchError
        └── MutationError

Only ConfigurationError is meant to abort a whole run. DataIntegrityError is
fatal to a single issue, and ExternalServiceError subclasses are caught at the
call site that issued the failing request.

Example Usage:
    >>> from idle_sweeper.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""


class IdleSweeperError(Exception):
    """Base exception for all idle-sweeper errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(IdleSweeperError):
    """Configuration-related errors.

    Raised when the configuration file is missing, unreadable, or contains
    invalid values (for example a malformed duration).
    """

    pass


class DataIntegrityError(IdleSweeperError):
    """Tracker data contradicts itself.

    Raised when an issue has assignees but no matching "assigned" event, so
    no grace-period anchor can be established. Fatal to that issue only.

    Attributes:
        issue_number: The issue whose data is inconsistent
    """

    def __init__(self, message: str, issue_number: int | None = None) -> None:
        self.issue_number = issue_number
        full_message = message
        if issue_number is not None:
            full_message = f"{message} (issue: #{issue_number})"
        super().__init__(full_message)
        self.message = message


class ExternalServiceError(IdleSweeperError):
    """Communication with the hosting platform failed.

    Attributes:
        message: Error message
        status_code: HTTP status code, when the platform returned one
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
        """
        self.status_code = status_code

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class TransientFetchError(ExternalServiceError):
    """Reading events, commits, comments or issues failed."""

    pass


class MutationError(ExternalServiceError):
    """Removing assignees or posting a comment failed."""

    pass
