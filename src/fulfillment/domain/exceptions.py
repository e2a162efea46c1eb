"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Each subclass carries a stable ``code`` that callers can branch on without
parsing the message.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "VALIDATION_FAILED"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "NOT_FOUND"


class InsufficientAvailableError(DomainException):
    """A reservation asked for more units than are currently available."""

    code = "INSUFFICIENT_AVAILABLE"


class InsufficientStockError(DomainException):
    """A sale or order asked for more units than are in stock."""

    code = "INSUFFICIENT_STOCK"


class NegativeResultError(DomainException):
    """A manual adjustment would drive the stock quantity below zero."""

    code = "NEGATIVE_RESULT"


class InvalidTransitionError(DomainException):
    """The requested order status change is not allowed."""

    code = "INVALID_TRANSITION"


class ConcurrencyConflictError(DomainException):
    """A record changed between read and write."""

    code = "CONCURRENCY_CONFLICT"
