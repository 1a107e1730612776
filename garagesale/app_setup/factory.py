"""
Factory d'application pour les entrypoints (ex: garagesale.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from typing import Optional
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers
from garagesale.payments.stripe_client import PaymentGateway, build_gateway

def create_app(gateway: Optional[PaymentGateway] = None) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - la passerelle de paiement (app.state.payment_gateway), injectable en tests
      - middlewares de base et de sécurité
      - gestionnaires d'exceptions
      - tous les routers (API, health)
    """
    app = FastAPI(title="Garage Sale API", lifespan=lifespan)
    app.state.payment_gateway = gateway or build_gateway()
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
