from __future__ import annotations


class FrontDeskError(Exception):
    """Base error: carries the HTTP status it maps to at the handler boundary."""

    status_code: int = 500
    kind: str = "FrontDeskError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FrontDeskError):
    status_code = 400
    kind = "ValidationError"


class DuplicateEmail(FrontDeskError):
    status_code = 400
    kind = "DuplicateEmail"

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class NotFound(FrontDeskError):
    status_code = 404
    kind = "NotFound"

    def __init__(self, message: str = "Patient not found") -> None:
        super().__init__(message)


class UploadRejected(FrontDeskError):
    status_code = 400
    kind = "UploadRejected"

    def __init__(self, reason: str) -> None:
        super().__init__(f"File upload error: {reason}")
        self.reason = reason


class UnsupportedMediaType(UploadRejected):
    kind = "UnsupportedMediaType"

    def __init__(self, reason: str = "Only images allowed") -> None:
        super().__init__(reason)


class PayloadTooLarge(UploadRejected):
    kind = "PayloadTooLarge"

    def __init__(self, reason: str = "File too large") -> None:
        super().__init__(reason)


class StorageError(FrontDeskError):
    status_code = 500
    kind = "StorageError"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Database error: {detail}")


class MailError(Exception):
    """Raised by the mail transport; never reaches an HTTP client."""
