class RepositoryError(RuntimeError):
    """Raised when repository operations fail.

    Wraps lower-level boto exceptions to provide a stable, domain-friendly API.
    """

    pass


class DuplicateKeyError(RepositoryError):
    """An insert collided with an item that already has the same key."""


class NotFoundError(RepositoryError):
    """No item exists for the requested key."""
