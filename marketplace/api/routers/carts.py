#marketplace/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.domain.schemas import (
    ItemIn,
    QuantityIn,
    CartOut,
    GroupedCartOut,
)
from marketplace.services.cart_service import CartService
from marketplace.services.product_client import ProductClient

router = APIRouter(prefix="/carts", tags=["carts"])


def get_product_client() -> ProductClient:
    return ProductClient()


def get_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(db=db, product_client=product_client)


@router.get("/{customer_id}", response_model=CartOut)
def get_cart(customer_id: int, svc: CartService = Depends(get_service)):
    return svc.get_cart(customer_id)


@router.get("/{customer_id}/grouped", response_model=GroupedCartOut)
def get_grouped_cart(customer_id: int, svc: CartService = Depends(get_service)):
    """Cart split per seller, each group with its own totals."""
    return svc.get_grouped_cart(customer_id)


@router.post("/{customer_id}/items", response_model=CartOut)
def add_item(customer_id: int, payload: ItemIn, svc: CartService = Depends(get_service)):
    try:
        return svc.add_product(
            customer_id=customer_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{customer_id}/items/{product_id}", response_model=CartOut)
def update_item(
    customer_id: int,
    product_id: int,
    payload: QuantityIn,
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_quantity(customer_id, product_id, payload.quantity)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{customer_id}/items/{product_id}", response_model=CartOut)
def remove_item(customer_id: int, product_id: int, svc: CartService = Depends(get_service)):
    try:
        return svc.remove_product(customer_id, product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{customer_id}")
def clear_cart(customer_id: int, svc: CartService = Depends(get_service)):
    removed = svc.clear(customer_id)
    return {"customer_id": customer_id, "removed": removed}
