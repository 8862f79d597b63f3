from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcore.api.deps import current_user_id, http_error
from shopcore.db import get_db
from shopcore.schemas.cart_schema import AddItemIn, CartOut, UpdateItemIn
from shopcore.services.cart_service import CartService
from shopcore.services.exceptions import ShopError

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut, summary="Get current user's cart")
def get_cart(user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    return CartService(db).get_or_create(user_id)


@router.post("/items", response_model=CartOut, summary="Add product to cart")
def add_item(
    payload: AddItemIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).add_item(user_id, payload.product_id, payload.quantity)
    except ShopError as e:
        raise http_error(e)


@router.patch("/items/{product_id}", response_model=CartOut, summary="Set item quantity")
def update_item(
    product_id: str,
    payload: UpdateItemIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).update_item(user_id, product_id, payload.quantity)
    except ShopError as e:
        raise http_error(e)


@router.delete("/items/{product_id}", response_model=CartOut, summary="Remove item")
def remove_item(
    product_id: str,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        return CartService(db).remove_item(user_id, product_id)
    except ShopError as e:
        raise http_error(e)


@router.delete("", response_model=CartOut, summary="Clear cart")
def clear_cart(user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    return CartService(db).clear(user_id)
