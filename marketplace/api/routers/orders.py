# marketplace/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.domain.schemas import OrderOut
from marketplace.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.get("/", response_model=List[OrderOut])
def list_orders(customer_id: int = Query(..., gt=0), svc: OrderService = Depends(get_service)):
    """
    All orders of a customer, oldest first.
    """
    return [OrderOut.model_validate(o, from_attributes=True) for o in svc.list_orders(customer_id)]


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    customer_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Order details.
    """
    try:
        order = svc.get_order(order_id, customer_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return OrderOut.model_validate(order, from_attributes=True)
