"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI and HTTP layers can catch them uniformly and display
user-friendly messages.  Each subclass carries a ``kind`` used in
structured error bodies.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    kind = "DomainError"


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    kind = "ValidationError"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = "NotFoundError"


class ProductNotFoundError(EntityNotFoundError):
    """The product lookup did not return a requested product."""

    kind = "ProductNotFound"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product '{product_id}' not found")
        self.product_id = product_id


class InvalidStateError(DomainException):
    """An illegal state transition was attempted."""

    kind = "InvalidStateError"


class ConcurrentModificationError(DomainException):
    """The entity was changed by someone else since it was loaded."""

    kind = "ConcurrentModificationError"


class InsufficientStockError(DomainException):
    """A stock adjustment would leave a product with negative stock."""

    kind = "InsufficientStock"


class DependencyError(DomainException):
    """An external collaborator failed; the caller may retry with backoff."""

    kind = "DependencyError"


class DependencyUnavailableError(DependencyError):

    kind = "DependencyUnavailable"


class DependencyTimeoutError(DependencyError):

    kind = "DependencyTimeout"
