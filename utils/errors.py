"""
Defines custom exception classes for the application.
"""

class SafeCommitException(Exception):
    """Base exception class for safecommit application."""
    pass

class ProviderError(SafeCommitException):
    """Raised when a backend fails in a way that is not a transient generation failure."""
    pass

class ConfigError(SafeCommitException):
    """Raised when there is a configuration error."""
    pass

class GitError(SafeCommitException):
    """Raised when a git command fails."""
    pass
