from fastapi import Request, Depends
from typing import Optional, Dict, Any
import logging
import garagesale.infra.supabase_client as supabase_client
from garagesale.errors import AuthError

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """
    Résout un jeton d'accès via Supabase Auth (auth.get_user) en identité {id, email}.
    L'identifiant (subject) est la seule clé utilisée pour les contrôles de propriété.
    """
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if isinstance(user, dict):
        return {"id": user.get("id"), "email": user.get("email")}
    return {"id": getattr(user, "id", None), "email": getattr(user, "email", None)}

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _token_from_request(request)
    if not token:
        raise AuthError("Authentification requise")
    try:
        user = get_user_from_token(token)
    except Exception:
        logger.info("security.get_current_user: jeton refusé")
        raise AuthError("Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise AuthError("Session expirée, veuillez vous connecter")
    return user

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Identité si un jeton valide est présent, sinon None (pages publiques)."""
    try:
        return get_current_user(request)
    except AuthError:
        return None

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def optional_user(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Optional[Dict[str, Any]]:
    return user

def subject_of(identity: Optional[Dict[str, Any]], message: str = "Authentification requise") -> str:
    """Retourne identity['id'] ou lève AuthError si l'appelant n'est pas authentifié."""
    subject = (identity or {}).get("id")
    if not subject:
        raise AuthError(message)
    return str(subject)
