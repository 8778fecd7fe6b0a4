"""Domain layer for the product catalog."""

from catalog_api.domain.exceptions import (
    BusinessRuleRejection,
    CatalogError,
    FileSystemError,
    InvalidImageIndexError,
    NoFilesUploadedError,
    NotFoundError,
    PersistenceError,
    ProductNotFoundError,
    ReviewNotAllowedError,
    ValidationError,
)

__all__ = [
    "BusinessRuleRejection",
    "CatalogError",
    "FileSystemError",
    "InvalidImageIndexError",
    "NoFilesUploadedError",
    "NotFoundError",
    "PersistenceError",
    "ProductNotFoundError",
    "ReviewNotAllowedError",
    "ValidationError",
]
