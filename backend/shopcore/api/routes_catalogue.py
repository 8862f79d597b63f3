from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from shopcore.db import get_db
from shopcore.repositories.product_repo import ProductRepository
from shopcore.schemas.product_schema import ProductOut, ProductPageOut

router = APIRouter(tags=["catalogue"])


@router.get("", response_model=ProductPageOut, summary="List products")
def list_products(
    q: Optional[str] = Query(None, description="search term"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items, total = ProductRepository(db).list(q=q, page=page, size=size)
    return ProductPageOut(
        items=[ProductOut.model_validate(p) for p in items],
        total=total,
    )


@router.get("/{product_id}", response_model=ProductOut, summary="Get product by ID")
def get_product(product_id: str, db: Session = Depends(get_db)):
    p = ProductRepository(db).get(product_id)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.model_validate(p)
