class BlogStoreError(Exception):
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BlogStoreError):
    """A required field is missing or empty."""

    status_code = 422


class ConflictError(BlogStoreError):
    """A slug or id already exists, or the slug is in a state that forbids the change."""

    status_code = 409


class NotFound(BlogStoreError):
    status_code = 404


class BrokenChain(BlogStoreError):
    """A forward pointer names a slug that has no record."""


class CycleDetected(BlogStoreError):
    """Following forward pointers revisits a slug."""
