"""Custom exceptions for the settings engine."""


class PreferencesError(Exception):
    """Base exception for settings-related errors."""
    pass


class PreconditionViolation(PreferencesError):
    """Raised when an operation needs an edit session that is not open, or vice versa"""
    pass


class StorageError(PreferencesError):
    """Raised when the configuration cannot be loaded or saved"""
    pass


class FeatureDisabledError(PreferencesError):
    """Raised when a setting or action is gated off by a feature flag"""
    pass


class CommitInProgressError(PreferencesError):
    """Raised when a commit is requested while another one is running"""
    pass
