# storefront/api/routers/orders.py
from typing import List
from fastapi import APIRouter, Body, Depends, Header, Response
from sqlalchemy.orm import Session

from storefront.api.deps import Actor, get_actor, get_lock_service
from storefront.data.database import get_db
from storefront.domain.errors import DuplicateRequest, OrderError
from storefront.domain.schemas import OrderCreate, OrderOut, PaymentDetailsIn, PurchaseCheckOut
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_actor),
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    """
    Places an order. Totals are computed here; any totals sent by the
    client are ignored. With an Idempotency-Key header a repeated
    submission is rejected instead of creating a second order.
    """
    token = None
    if idempotency_key:
        token = lock_service.claim_request(actor.id, idempotency_key)
        if token is None:
            raise DuplicateRequest(idempotency_key)

    svc = get_service(db)
    try:
        return svc.create_order(
            owner_id=actor.id,
            line_items=[i.model_dump(include={"product_id", "quantity"}) for i in payload.order_items],
            shipping_address=payload.shipping_address.model_dump(),
            payment_method=payload.payment_method,
        )
    except OrderError:
        # rejected or rolled back, nothing was committed: the key may be reused
        if token:
            lock_service.release_request(actor.id, idempotency_key, token)
        raise


@router.get("/mine", response_model=List[OrderOut])
def list_my_orders(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).list_own_orders(actor.id)


@router.get("/", response_model=List[OrderOut])
def list_orders(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).list_all_orders(actor.is_admin)


@router.get("/check-purchase/{product_id}", response_model=PurchaseCheckOut)
def check_purchase(product_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return {
        "product_id": product_id,
        "has_purchased": get_service(db).has_purchased(actor.id, product_id),
    }


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).get_order(order_id, actor.id, actor.is_admin)


@router.put("/{order_id}/pay", response_model=OrderOut)
def pay_order(
    order_id: int,
    payload: PaymentDetailsIn | None = Body(None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    details = payload.model_dump() if payload else {}
    return get_service(db).mark_paid(order_id, actor.id, actor.is_admin, details)


@router.put("/{order_id}/ship", response_model=OrderOut)
def ship_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).mark_shipped(order_id, actor.is_admin)


@router.put("/{order_id}/receive", response_model=OrderOut)
def receive_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).mark_delivered(order_id, actor.id)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).cancel(order_id, actor.id, actor.is_admin)


@router.put("/{order_id}/refund", response_model=OrderOut)
def refund_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return get_service(db).refund(order_id, actor.is_admin)


@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    get_service(db).delete_order(order_id, actor.is_admin)
    return Response(status_code=204)
