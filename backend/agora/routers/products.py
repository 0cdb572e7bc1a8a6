"""Product catalogue router."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.commerce import ProductCreate, ProductRead, ProductUpdate
from agora.services import products
from agora.validation import ProductStatus

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductRead])
def list_products(
    tenant_id: UUID | None = None,
    seller_id: UUID | None = None,
    status: ProductStatus | None = None,
    ctx: Context = Depends(get_context),
):
    return products.get_products(ctx, tenant_id, seller_id, status)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: UUID, ctx: Context = Depends(get_context)):
    product = products.get_product_by_id(ctx, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(data: ProductCreate, ctx: Context = Depends(get_context)):
    return products.create_product(ctx, data)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(product_id: UUID, update: ProductUpdate, ctx: Context = Depends(get_context)):
    return products.update_product(ctx, product_id, update)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: UUID, ctx: Context = Depends(get_context)):
    products.delete_product(ctx, product_id)
