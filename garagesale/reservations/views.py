"""Endpoints de réservation (panier).
- POST /api/v1/items/{id}/reserve: available -> pending pour l'utilisateur connecté (rate-limité).
- POST /api/v1/items/{id}/release: abandon du panier, par l'auteur de la réservation ou le propriétaire.
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends

from garagesale.reservations import service as reservations_service
from garagesale.utils.rate_limit import optional_rate_limit
from garagesale.utils.security import require_user

router = APIRouter(prefix="/api/v1/items", tags=["Reservations API"])


@router.post("/{item_id}/reserve", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def reserve_item(item_id: str, user: Dict[str, Any] = Depends(require_user)):
    item = reservations_service.reserve(item_id, user)
    return {"id": item.get("id"), "status": item.get("status"), "reserved_at": item.get("reserved_at")}

@router.post("/{item_id}/release")
def release_item(item_id: str, user: Dict[str, Any] = Depends(require_user)):
    item = reservations_service.release(item_id, user)
    return {"id": item.get("id"), "status": item.get("status")}
