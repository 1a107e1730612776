"""
Adaptateur Stripe: client de passerelle construit explicitement au démarrage (factory)
et injecté dans le checkout et le webhook, au lieu d'un module stripe configuré globalement.
- Timeout réseau borné, aucun retry automatique (le retry éventuel appartient à l'appelant).
- La vérification de signature des webhooks est déléguée à stripe.Webhook.construct_event.
"""
import json
import time
import logging
from typing import Any, Dict, List, Optional

import stripe
from fastapi import Request

from garagesale import config
from garagesale.errors import PaymentGatewayError, WebhookConfigError, WebhookSignatureError

logger = logging.getLogger(__name__)

# Bornes imposées par Stripe pour expires_at d'une session Checkout
_MIN_SESSION_TTL_MINUTES = 30
_MAX_SESSION_TTL_MINUTES = 24 * 60


class GatewayConfig:
    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        timeout_seconds: float = 10.0,
        currency: str = "usd",
        session_ttl_minutes: int = 30,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.timeout_seconds = timeout_seconds
        self.currency = currency
        self.session_ttl_minutes = session_ttl_minutes

    @classmethod
    def from_settings(cls) -> "GatewayConfig":
        return cls(
            secret_key=config.STRIPE_SECRET_KEY,
            webhook_secret=config.STRIPE_WEBHOOK_SECRET,
            timeout_seconds=config.STRIPE_TIMEOUT_SECONDS,
            currency=config.CHECKOUT_CURRENCY,
            session_ttl_minutes=config.CHECKOUT_SESSION_TTL_MINUTES,
        )


class PaymentGateway:
    def __init__(self, gateway_config: GatewayConfig, client: Optional[Any] = None):
        self.config = gateway_config
        self._client = client

    @property
    def currency(self) -> str:
        return self.config.currency

    def _stripe(self):
        if self._client is None:
            if not self.config.secret_key:
                raise PaymentGatewayError("STRIPE_SECRET_KEY manquant")
            self._client = stripe.StripeClient(
                self.config.secret_key,
                http_client=stripe.RequestsClient(timeout=self.config.timeout_seconds),
                max_network_retries=0,
            )
        return self._client

    def _expires_at(self) -> int:
        ttl = min(max(self.config.session_ttl_minutes, _MIN_SESSION_TTL_MINUTES), _MAX_SESSION_TTL_MINUTES)
        return int(time.time()) + ttl * 60

    def create_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Crée une session Stripe Checkout (mode paiement).
        Retour: {"id": "cs_...", "url": "https://checkout.stripe.com/..."}
        Lève PaymentGatewayError si Stripe refuse la requête ou ne répond pas dans le délai.
        """
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": line_items,
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "expires_at": self._expires_at(),
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = self._stripe().checkout.sessions.create(params=params)
        except stripe.StripeError as e:
            logger.exception("payments.stripe_client.create_session failed metadata=%s", metadata)
            raise PaymentGatewayError(f"Erreur passerelle de paiement: {getattr(e, 'user_message', None) or str(e)}")
        return {"id": session.id, "url": session.url}

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Valide la signature Stripe (en-tête Stripe-Signature + secret webhook) puis
        retourne l'événement sous forme de dict.
        - WebhookConfigError si le secret n'est pas configuré.
        - WebhookSignatureError si la signature ou le payload est invalide.
        """
        if not self.config.webhook_secret:
            raise WebhookConfigError("STRIPE_WEBHOOK_SECRET manquant")
        try:
            stripe.Webhook.construct_event(payload, sig_header or "", self.config.webhook_secret)
            return json.loads(payload)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("payments.stripe_client.parse_event rejected: %s", e)
            raise WebhookSignatureError("Invalid Stripe webhook payload")


def build_gateway() -> PaymentGateway:
    return PaymentGateway(GatewayConfig.from_settings())

def get_gateway(request: Request) -> PaymentGateway:
    """Dépendance FastAPI: client de passerelle posé sur app.state par la factory."""
    return request.app.state.payment_gateway
