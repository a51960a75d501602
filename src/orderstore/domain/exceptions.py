"""Domain-level exceptions.

All failures are expressed as subclasses of DomainException so the CLI
layer can catch them uniformly and display user-friendly messages.

Store failures inside a transaction are always raised *after* the
rollback has been issued, so callers never observe partial writes.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Input was rejected before any statement was executed."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class PersistenceError(DomainException):
    """Base class for failures reported by the underlying store."""


class StatementError(PersistenceError):
    """A single SQL statement failed in the database driver."""


class TransactionFailedError(PersistenceError):
    """A statement inside a BEGIN/COMMIT block failed and was rolled back."""


class CreationFailedError(TransactionFailedError):
    """An insert did not yield the identifier of the new row."""


class UpdateFailedError(TransactionFailedError):
    """An update did not apply; the whole write was rolled back."""
