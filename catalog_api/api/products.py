"""Product API endpoints.

Provides endpoints for the product catalog:
- POST /products - create a product (admin)
- POST /products/images/upload/{id} - append images (admin)
- PUT /products/review/{id} - review a delivered product (user)
- PUT /products/{id} - partial update (admin)
- DELETE /products/images/remove/{id} - remove one image by index (admin)
- POST /products/sale - set the storewide sale (admin)
- GET /products/sale - get the storewide sale (admin)
- DELETE /products/{id} - delete a product and cascade into orders (admin)
- GET /products/find/{id} - product details
- GET /products - list, filter and search products
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile

from catalog_api.api.auth import Caller, require_admin, require_user
from catalog_api.api.deps import get_catalog_service, get_images, request_base_url
from catalog_api.api.schemas import (
    DeleteProductResponse,
    ErrorResponse,
    ProductCreateRequest,
    ProductResponse,
    ProductSchema,
    ProductsResponse,
    ProductUpdateRequest,
    RemoveImageRequest,
    ReviewRequest,
    ReviewSchema,
    SaleRequest,
    SaleResponse,
    SaleSetResponse,
    UpdatedProductResponse,
    UploadResponse,
)
from catalog_api.catalog.documents import Product
from catalog_api.catalog.image_store import ImageStore, IncomingImage
from catalog_api.catalog.service import CatalogService, ListQuery

router = APIRouter(prefix="/products", tags=["Products"])

Service = Annotated[CatalogService, Depends(get_catalog_service)]
Images = Annotated[ImageStore, Depends(get_images)]
Admin = Annotated[Caller, Depends(require_admin)]

ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# ============================================================================
# Converters
# ============================================================================


def product_to_schema(
    product: Product, request: Request, images: ImageStore
) -> ProductSchema:
    """Convert a stored product to its served form.

    Stored image filenames become absolute URLs on the requesting host.
    """
    base_url = request_base_url(request)
    return ProductSchema(
        id=product.id,
        title=product.title,
        desc=product.desc,
        categories=product.categories,
        size=product.size,
        color=product.color,
        price=product.price,
        sale=product.sale,
        images=[images.url_for(name, base_url) for name in product.images],
        reviews=[
            ReviewSchema(name=r.name, rating=r.rating, comment=r.comment)
            for r in product.reviews
        ],
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=ProductResponse,
    responses=ERRORS,
    summary="Create product",
)
async def create_product(
    body: ProductCreateRequest,
    request: Request,
    service: Service,
    images: Images,
    _: Admin,
) -> ProductResponse:
    """Create a product from the recognized fields."""
    product = await service.create_product(body.model_dump())
    return ProductResponse(product=product_to_schema(product, request, images))


@router.post(
    "/images/upload/{product_id}",
    response_model=UploadResponse,
    responses=ERRORS,
    summary="Upload product images",
)
async def upload_images(
    product_id: str,
    request: Request,
    service: Service,
    images: Images,
    _: Admin,
    files: Annotated[list[UploadFile] | None, File(alias="images")] = None,
) -> UploadResponse:
    """Append uploaded files to the product's images, in upload order."""
    incoming = [
        IncomingImage(filename=upload.filename, content=await upload.read())
        for upload in files or []
        if upload.filename
    ]
    product = await service.upload_images(product_id, incoming)
    return UploadResponse(
        message="Image(s) uploaded",
        product=product_to_schema(product, request, images),
    )


@router.put(
    "/review/{product_id}",
    response_model=UpdatedProductResponse,
    responses=ERRORS,
    summary="Review a delivered product",
)
async def add_review(
    product_id: str,
    body: ReviewRequest,
    request: Request,
    service: Service,
    images: Images,
    caller: Annotated[Caller, Depends(require_user)],
) -> UpdatedProductResponse:
    """Append a review when the caller has received the product."""
    product = await service.add_review(
        user_id=caller.user_id,
        product_id=product_id,
        name=body.name,
        rating=body.rating,
        comment=body.comment,
    )
    return UpdatedProductResponse(
        message="Review added",
        updated_product=product_to_schema(product, request, images),
    )


@router.delete(
    "/images/remove/{product_id}",
    response_model=UpdatedProductResponse,
    responses=ERRORS,
    summary="Remove a product image",
)
async def remove_image(
    product_id: str,
    body: RemoveImageRequest,
    request: Request,
    service: Service,
    images: Images,
    _: Admin,
) -> UpdatedProductResponse:
    """Remove the image at ``index`` from the product and the image store."""
    result = await service.remove_image(product_id, body.index)
    return UpdatedProductResponse(
        message="Image has been removed",
        updated_product=product_to_schema(result.product, request, images),
        warnings=result.warnings,
    )


@router.post(
    "/sale",
    response_model=SaleSetResponse,
    responses=ERRORS,
    summary="Set storewide sale",
)
async def set_sale(body: SaleRequest, service: Service, _: Admin) -> SaleSetResponse:
    """Apply one sale value to every product."""
    updated = await service.set_sale(body.sale)
    return SaleSetResponse(message="Sale has been set", updated=updated)


@router.get(
    "/sale",
    response_model=SaleResponse,
    responses=ERRORS,
    summary="Get storewide sale",
)
async def get_sale(service: Service, _: Admin) -> SaleResponse:
    return SaleResponse(sale=await service.get_sale())


@router.get(
    "/find/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product",
)
async def get_product(
    product_id: str,
    request: Request,
    service: Service,
    images: Images,
) -> ProductResponse:
    product = await service.get_product(product_id)
    return ProductResponse(product=product_to_schema(product, request, images))


@router.get(
    "",
    response_model=ProductsResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List products",
    description=(
        "Flags apply in precedence order: `new` (newest first, `limit` "
        "defaults to 5), `Categories` (exact tag), `search` (case-insensitive "
        "title or category substring), otherwise every product."
    ),
)
async def list_products(
    request: Request,
    service: Service,
    images: Images,
    new: bool = Query(default=False, description="Newest products first"),
    categories: str | None = Query(
        default=None, alias="Categories", description="Exact category tag"
    ),
    search: str | None = Query(default=None, description="Title or category text"),
    limit: int | None = Query(
        default=None, ge=1, le=100, description="Maximum results"
    ),
) -> ProductsResponse:
    products = await service.list_products(
        ListQuery(new=new, category=categories, search=search, limit=limit)
    )
    return ProductsResponse(
        products=[product_to_schema(p, request, images) for p in products]
    )


@router.put(
    "/{product_id}",
    response_model=UpdatedProductResponse,
    responses=ERRORS,
    summary="Update product",
)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    request: Request,
    service: Service,
    images: Images,
    _: Admin,
) -> UpdatedProductResponse:
    """Overwrite the supplied fields; absent fields are left as they are."""
    product = await service.update_product(
        product_id, body.model_dump(exclude_unset=True)
    )
    return UpdatedProductResponse(
        message="Product has been updated",
        updated_product=product_to_schema(product, request, images),
    )


@router.delete(
    "/{product_id}",
    response_model=DeleteProductResponse,
    responses=ERRORS,
    summary="Delete product",
)
async def delete_product(
    product_id: str,
    service: Service,
    _: Admin,
) -> DeleteProductResponse:
    """Delete the product, its image files and its order line items."""
    result = await service.delete_product(product_id)
    return DeleteProductResponse(
        message="Product and associated images have been deleted",
        orders_updated=result.orders_updated,
        orders_deleted=result.orders_deleted,
        warnings=result.warnings,
    )
