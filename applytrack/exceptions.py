"""Custom exceptions for the application tracker."""


class ApplyTrackError(Exception):
    """Base exception for all application tracker errors."""


class OracleError(ApplyTrackError):
    """The extraction oracle failed or answered in an unexpected shape."""


class RepositoryError(ApplyTrackError):
    """A storage operation failed."""


class DuplicateApplicationError(RepositoryError):
    """An application with the same id already exists."""
