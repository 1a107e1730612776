"""Cas d'usage 'garages': visibilité publique/privée, recherche et CRUD réservé au propriétaire."""
from typing import Any, Dict, List, Optional
import logging

from garagesale.garages import repository
from garagesale.items import repository as items_repository
from garagesale.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from garagesale.utils.security import subject_of

logger = logging.getLogger(__name__)

def list_garages(identity: Optional[Dict[str, Any]] = None) -> List[dict]:
    """
    Garages publics, plus ceux de l'appelant s'il est authentifié (dédoublonnés par id).
    """
    garages = repository.list_public_garages()
    owner_id = (identity or {}).get("id")
    if not owner_id:
        return garages
    merged: Dict[str, dict] = {}
    for garage in garages + repository.list_garages_by_owner(owner_id):
        merged[str(garage.get("id"))] = garage
    return list(merged.values())

def get_garage(identity: Optional[Dict[str, Any]], garage_id: str) -> Optional[dict]:
    """Retourne le garage s'il est public ou appartient à l'appelant, sinon None."""
    garage = repository.get_garage(garage_id)
    if not garage:
        return None
    owner_id = (identity or {}).get("id")
    if garage.get("is_public") or (owner_id and garage.get("owner_id") == owner_id):
        return garage
    return None

def get_garages_by_owner(identity: Optional[Dict[str, Any]], owner_id: str) -> List[dict]:
    """Garages d'un vendeur: tous pour le vendeur lui-même, les publics seulement pour les autres."""
    garages = repository.list_garages_by_owner(owner_id)
    if (identity or {}).get("id") == owner_id:
        return garages
    return [g for g in garages if g.get("is_public")]

def search_garages(identity: Optional[Dict[str, Any]], search_term: Optional[str] = None) -> List[dict]:
    garages = list_garages(identity)
    term = (search_term or "").strip().lower()
    if not term:
        return garages
    return [
        g for g in garages
        if term in (g.get("name") or "").lower() or term in (g.get("description") or "").lower()
    ]

def _load_owned(identity: Dict[str, Any], garage_id: str, action: str) -> dict:
    subject = subject_of(identity, f"Authentification requise pour {action} un garage")
    garage = repository.get_garage(garage_id)
    if not garage:
        raise NotFoundError("Garage introuvable")
    if garage.get("owner_id") != subject:
        raise AuthorizationError(f"Vous ne pouvez {action} que vos propres garages")
    return garage

def create_garage(identity: Optional[Dict[str, Any]], name: str, description: Optional[str] = None, is_public: bool = True) -> dict:
    subject = subject_of(identity, "Authentification requise pour créer un garage")
    name = (name or "").strip()
    if not name:
        raise ValidationError("Le nom du garage est requis")
    data: Dict[str, Any] = {
        "owner_id": subject,
        "name": name,
        "description": (description or "").strip() or None,
        "is_public": bool(is_public),
    }
    created = repository.create_garage(data)
    if not created:
        raise RuntimeError("Echec de création du garage")
    logger.info("garages.create id=%s owner_id=%s", created.get("id"), subject)
    return created

def update_garage(
    identity: Optional[Dict[str, Any]],
    garage_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_public: Optional[bool] = None,
) -> dict:
    garage = _load_owned(identity, garage_id, "modifier")
    updates: Dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            raise ValidationError("Le nom du garage ne peut pas être vide")
        updates["name"] = name.strip()
    if description is not None:
        updates["description"] = description.strip()
    if is_public is not None:
        updates["is_public"] = bool(is_public)
    if not updates:
        return garage
    updated = repository.update_garage(garage_id, updates)
    if not updated:
        raise RuntimeError("Echec de mise à jour du garage")
    return updated

def delete_garage(identity: Optional[Dict[str, Any]], garage_id: str) -> str:
    _load_owned(identity, garage_id, "supprimer")
    if items_repository.count_items_in_garage(garage_id) > 0:
        raise ConflictError("Impossible de supprimer un garage qui contient des items. Supprimez-les d'abord.")
    if not repository.delete_garage(garage_id):
        raise RuntimeError("Echec de suppression du garage")
    logger.info("garages.delete id=%s", garage_id)
    return garage_id
