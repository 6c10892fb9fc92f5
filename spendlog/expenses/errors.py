from __future__ import annotations


class SpendlogError(Exception):
    pass


class ConfigError(SpendlogError):
    """Raised when the category/budget configuration cannot be parsed."""


class CsvImportError(SpendlogError):
    """Raised when a CSV batch fails and its transaction was rolled back."""


class UserAlreadyExistsError(SpendlogError):
    pass
