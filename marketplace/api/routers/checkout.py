# marketplace/api/routers/checkout.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketplace.api.routers.carts import get_product_client
from marketplace.data.database import get_db
from marketplace.domain.checkout import CheckoutStatus
from marketplace.domain.errors import CheckoutInProgress
from marketplace.domain.schemas import CheckoutIn, CheckoutOutcomeOut
from marketplace.services.cart_service import CartService
from marketplace.services.checkout_service import CheckoutService
from marketplace.services.lock_service import LockService
from marketplace.services.product_client import ProductClient

router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_lock_service() -> LockService:
    return LockService()


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    product_client: ProductClient = Depends(get_product_client),
) -> CheckoutService:
    return CheckoutService(
        db=db,
        lock_service=lock_service,
        cart_service=CartService(db=db, product_client=product_client),
    )


@router.post("/", response_model=CheckoutOutcomeOut)
def checkout(payload: CheckoutIn, svc: CheckoutService = Depends(get_service)):
    """
    One order per seller in the cart (or only payload.seller_id's items).

    - 400: the request was rejected before anything was written (missing
      shipping fields, unknown payment method, empty cart). The FAILED outcome
      is the detail and its `error` is set.
    - 200: every seller group was attempted. The status is COMPLETED,
      PARTIALLY_COMPLETED or FAILED (every group failed, e.g. out of stock),
      and `failures` tells why per seller. `error` is null.
    """
    try:
        outcome = svc.checkout(
            customer_id=payload.customer_id,
            shipping_info=payload.shipping_info.to_domain(),
            payment_method=payload.payment_method,
            seller_filter=payload.seller_id,
            notes=payload.notes,
        )
    except CheckoutInProgress as e:
        raise HTTPException(status_code=409, detail=e.message)

    body = CheckoutOutcomeOut.model_validate(outcome, from_attributes=True)

    if outcome.status == CheckoutStatus.FAILED and outcome.error is not None:
        raise HTTPException(status_code=400, detail=body.model_dump(mode="json"))

    return body
