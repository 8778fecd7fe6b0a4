"""API schemas for the catalog API.

Pydantic models for request validation and the response envelope.
Wire names keep the storefront's established casing (``Success``,
``Categories``, ``Updated_Product``) through aliases.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Common Schemas
# ============================================================================


class Envelope(BaseModel):
    """Base response envelope."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True, alias="Success")


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(Envelope):
    """Standard error response.

    ``errors`` is only present for validation failures.
    """

    success: bool = Field(default=False, alias="Success")
    message: str = Field(..., alias="Message", description="Human-readable error message")
    errors: list[ErrorDetail] | None = Field(default=None, description="Field errors")


# ============================================================================
# Product Schemas
# ============================================================================


class ReviewSchema(BaseModel):
    """Review as returned to clients."""

    name: str
    rating: float
    comment: str


class ProductSchema(BaseModel):
    """Product as returned to clients. ``images`` holds absolute URLs."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Product identifier")
    title: str
    desc: str | None = None
    categories: list[str] = Field(default_factory=list, alias="Categories")
    size: str | None = None
    color: str | None = None
    price: float = 0.0
    sale: float = 0.0
    images: list[str] = Field(default_factory=list, description="Image URLs")
    reviews: list[ReviewSchema] = Field(default_factory=list)
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class ProductCreateRequest(BaseModel):
    """Request to create a product. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=500, description="Product title")
    desc: str | None = Field(default=None, description="Description")
    categories: list[str] = Field(
        default_factory=list, alias="Categories", description="Category tags"
    )
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    price: float = Field(default=0.0, ge=0, description="Unit price")
    sale: float = Field(default=0.0, ge=0, le=100, description="Sale percentage")


class ProductUpdateRequest(BaseModel):
    """Partial product update. Supplied fields overwrite wholesale."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str | None = Field(default=None, min_length=1, max_length=500)
    desc: str | None = None
    categories: list[str] | None = Field(default=None, alias="Categories")
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    price: float | None = Field(default=None, ge=0)
    sale: float | None = Field(default=None, ge=0, le=100)

    @field_validator("title", "categories", "price", "sale")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class ReviewRequest(BaseModel):
    """Request to review a delivered product."""

    rating: float = Field(..., ge=0, le=5, description="Enter a valid rating")
    name: str = Field(
        ..., min_length=3, description="Enter a valid name of minimum 3 alphabets"
    )
    comment: str = Field(..., min_length=3, description="Enter valid comment")


class RemoveImageRequest(BaseModel):
    """Request to remove one image by position."""

    index: int = Field(..., description="Zero-based position in the image list")


class SaleRequest(BaseModel):
    """Request to set the storewide sale."""

    model_config = ConfigDict(populate_by_name=True)

    sale: float = Field(..., alias="Sale", ge=0, le=100, description="Sale percentage")


# ============================================================================
# Response Envelopes
# ============================================================================


class ProductResponse(Envelope):
    """Single product."""

    product: ProductSchema = Field(..., alias="Product")


class ProductsResponse(Envelope):
    """Product listing."""

    products: list[ProductSchema] = Field(..., alias="Products")


class UploadResponse(Envelope):
    """Result of an image upload."""

    message: str = Field(..., alias="Message")
    product: ProductSchema = Field(..., alias="Product")


class UpdatedProductResponse(Envelope):
    """Product after a review, update or image removal."""

    message: str = Field(..., alias="Message")
    updated_product: ProductSchema = Field(..., alias="Updated_Product")
    warnings: list[str] = Field(default_factory=list, alias="Warnings")


class SaleSetResponse(Envelope):
    """Result of setting the storewide sale."""

    message: str = Field(..., alias="Message")
    updated: int = Field(..., alias="Updated", description="Products updated")


class SaleResponse(Envelope):
    """Current storewide sale. ``null`` for an empty catalog."""

    sale: float | None = Field(..., alias="Sale")


class DeleteProductResponse(Envelope):
    """Result of deleting a product."""

    message: str = Field(..., alias="Message")
    orders_updated: int = Field(..., alias="OrdersUpdated")
    orders_deleted: int = Field(..., alias="OrdersDeleted")
    warnings: list[str] = Field(default_factory=list, alias="Warnings")
