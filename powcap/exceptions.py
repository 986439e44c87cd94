"""Exception hierarchy for powcap."""


class PowCapError(Exception):
    """Base exception for all powcap errors."""


class EntropyUnavailable(PowCapError):
    """Raised when the secure random source cannot produce bytes."""


class PersistenceError(PowCapError):
    """Raised when the token store cannot be saved or loaded."""


class ConfigError(PowCapError):
    """Raised when configuration is invalid."""
