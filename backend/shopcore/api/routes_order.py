from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shopcore.api.deps import current_user_id, http_error, require
from shopcore.db import get_db
from shopcore.schemas.order_schema import (
    CreateDirectOrderIn,
    OrderOut,
    OrderPageOut,
    UpdateStatusIn,
)
from shopcore.services.exceptions import ShopError
from shopcore.services.order_lifecycle_service import OrderLifecycleService
from shopcore.services.order_service import OrderService

router = APIRouter(tags=["orders"])


@router.post(
    "",
    response_model=OrderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Place order from cart (reserves stock, clears cart)",
)
def create_from_cart(user_id: str = Depends(current_user_id), db: Session = Depends(get_db)):
    try:
        order = OrderService(db).create_from_cart(user_id)
    except ShopError as e:
        raise http_error(e)
    return OrderOut.model_validate(order)


@router.post(
    "/direct",
    response_model=OrderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Place order from an explicit item list",
)
def create_direct(
    payload: CreateDirectOrderIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        order = OrderService(db).create_direct(
            user_id, [it.model_dump() for it in payload.items]
        )
    except ShopError as e:
        raise http_error(e)
    return OrderOut.model_validate(order)


@router.get("", response_model=OrderPageOut, summary="List all orders (admin)")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    require(user_id, "orders:list_all")
    return OrderPageOut.model_validate(OrderService(db).list_orders(page=page, limit=limit))


@router.get("/mine", response_model=OrderPageOut, summary="Current user's order history")
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    return OrderPageOut.model_validate(
        OrderService(db).list_orders(user_id=user_id, page=page, limit=limit)
    )


@router.get("/{order_id}", response_model=OrderOut, summary="Get order")
def get_order(
    order_id: int,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        order = OrderService(db).get(order_id)
    except ShopError as e:
        raise http_error(e)
    require(user_id, "orders:read", order)
    return OrderOut.model_validate(order)


@router.patch("/{order_id}", response_model=OrderOut, summary="Update order status (admin)")
def update_status(
    order_id: int,
    payload: UpdateStatusIn,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    require(user_id, "orders:update_status")
    try:
        order = OrderLifecycleService(db).update_status(order_id, payload.status)
    except ShopError as e:
        raise http_error(e)
    return OrderOut.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderOut, summary="Cancel order")
def cancel(
    order_id: int,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        require(user_id, "orders:cancel", OrderService(db).get(order_id))
        order = OrderLifecycleService(db).cancel(order_id)
    except ShopError as e:
        raise http_error(e)
    return OrderOut.model_validate(order)
