"""Error taxonomy shared by every module.

- ValidationError: user-correctable input problems (4xx)
- NotFoundError: the referenced toaster does not exist (404)
- SoftRejectionError: expected refusals driven by client markers
  (already voted, upload cooldown); never logged as errors
- StorageError: disk or database failure (500, logged with stack)
"""


class ToastrankError(Exception):
    """Base toastrank error."""

    def __init__(self, message: str, code: str = "toastrank_error") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(ToastrankError):
    """Input rejected before any mutation."""

    def __init__(self, message: str, code: str = "validation_error") -> None:
        super().__init__(message, code)


class NotFoundError(ToastrankError):
    """Referenced entity is absent."""

    def __init__(self, message: str, code: str = "not_found") -> None:
        super().__init__(message, code)


class SoftRejectionError(ToastrankError):
    """Benign refusal based on an advisory client marker."""

    def __init__(self, message: str, code: str = "soft_rejection") -> None:
        super().__init__(message, code)


class StorageError(ToastrankError):
    """Disk or database failure."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        super().__init__(message, code)


class ToasterNotFoundError(NotFoundError):
    """Toaster does not exist (or was deleted)."""

    def __init__(self, message: str = "Toaster not found.") -> None:
        super().__init__(message, "toaster_not_found")
