"""Domain exceptions.

All catalog-level errors. The service layer raises these and the API
layer maps each class to an HTTP status code and the response envelope.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    Attributes:
        message: Human-readable error message.
        details: Additional error context.
        status_code: HTTP status the API layer responds with.
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Client Errors
# ============================================================================


class ValidationError(CatalogError):
    """Raised when input is malformed.

    Carries one entry per failing field.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message, details={"errors": errors or []})
        self.errors = errors or []


class BusinessRuleRejection(CatalogError):
    """Raised when well-formed input violates a business rule."""

    status_code = 400


class NoFilesUploadedError(BusinessRuleRejection):
    """Raised when an upload request carries no files."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            "No files were uploaded",
            details={"product_id": product_id},
        )


class InvalidImageIndexError(BusinessRuleRejection):
    """Raised when an image index is outside the product's image list."""

    def __init__(self, product_id: str, index: int, image_count: int) -> None:
        super().__init__(
            "Invalid image index",
            details={
                "product_id": product_id,
                "index": index,
                "image_count": image_count,
            },
        )


class ReviewNotAllowedError(BusinessRuleRejection):
    """Raised when a user reviews a product they have not received."""

    def __init__(self, user_id: str, product_id: str) -> None:
        super().__init__(
            "Product not found in user's delivered orders",
            details={"user_id": user_id, "product_id": product_id},
        )


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(CatalogError):
    """Raised when a referenced document does not exist."""

    status_code = 404


class ProductNotFoundError(NotFoundError):
    """Raised when a product id does not resolve."""

    def __init__(self, product_id: str) -> None:
        super().__init__(
            "Product not found",
            details={"product_id": product_id},
        )


# ============================================================================
# Storage Errors
# ============================================================================


class PersistenceError(CatalogError):
    """Raised when the document store rejects or loses a write."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code


class FileSystemError(CatalogError):
    """Raised when the image store cannot write a file."""

    status_code = 500
