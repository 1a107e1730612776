import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from garagesale.errors import WebhookConfigError, WebhookSignatureError
from garagesale.utils.security import require_user
from garagesale.utils.rate_limit import optional_rate_limit
from garagesale.payments import service as payments_service
from garagesale.payments import webhook as payments_webhook
from garagesale.payments.stripe_client import PaymentGateway, get_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


class CheckoutRequest(BaseModel):
    item_ids: List[str] = Field(default_factory=list)
    customer_id: str


# module garagesale.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(
    payload: CheckoutRequest,
    user: Dict[str, Any] = Depends(require_user),
    gateway: PaymentGateway = Depends(get_gateway),
):
    """
    Crée une commande 'pending' et une session de paiement pour les items réservés du panier.
    - Entrée JSON: { "item_ids": ["<item_id>", ...], "customer_id": "<user_id>" }
    - Sécurité: require_user + rate limit (10 req / 60s)
    - Réponse: { "session_id", "url", "order_id" }
    - Erreurs: 400 panier vide, 401 identité incohérente, 404 item absent,
      409 item non réservé par ce client, 502 passerelle indisponible
    """
    try:
        return payments_service.create_checkout_session(gateway, payload.item_ids, payload.customer_id, user)
    except RuntimeError as e:
        logger.exception("Erreur create_checkout_session")
        raise HTTPException(status_code=500, detail=str(e))

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, gateway: PaymentGateway = Depends(get_gateway)):
    """
    Webhook Stripe (Checkout).
    - Signature: validée par gateway.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Réconciliation: payments_webhook.handle_event (idempotent)
    - Réponses: 200 {"status": "ok"|"ignored", ...} dès que la signature est valide,
      400 si signature/payload invalide, 500 si le secret n'est pas configuré
    """
    payload = await request.body()
    try:
        event = gateway.parse_event(payload, request.headers.get("stripe-signature"))
    except WebhookConfigError as e:
        logger.error("payments.webhook misconfigured: %s", e.message)
        raise HTTPException(status_code=500, detail=e.message)
    except WebhookSignatureError as e:
        raise HTTPException(status_code=400, detail=e.message)

    result = await run_in_threadpool(payments_webhook.handle_event, event)
    return JSONResponse(result)
