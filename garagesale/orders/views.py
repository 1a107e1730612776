"""Endpoints API des commandes (lecture seule).
Les commandes sont créées par le checkout et finalisées par le webhook de paiement.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from garagesale.orders import service as orders_service
from garagesale.utils.security import require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.get("", response_model=List[Dict[str, Any]])
def my_orders(user: Dict[str, Any] = Depends(require_user)):
    return orders_service.find_by_customer(user.get("id"))

@router.get("/by-item/{item_id}", response_model=List[Dict[str, Any]])
def orders_by_item(item_id: str, user: Dict[str, Any] = Depends(require_user)):
    return orders_service.orders_for_item(user, item_id)

@router.get("/{order_id}")
def get_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    return orders_service.get_order_for(user, order_id)
