"""Exception taxonomy shared by the record store, services and UI."""


class FinanceError(Exception):
    """Base class for every error the app raises on purpose."""


class ValidationError(FinanceError, ValueError):
    """Input rejected by a service (bad amount, unknown type, duplicate name...)."""


class NotFoundError(FinanceError, LookupError):
    """A referenced record does not exist."""


class StorageUnavailableError(FinanceError):
    """The record store is closed or could not be opened.

    Never retried and never replaced by a cached value.
    """


class MalformedInputError(FinanceError):
    """An import or backup file that cannot be used as a whole."""


class UnsupportedFileError(MalformedInputError):
    """The file extension is not one the importer reads."""
