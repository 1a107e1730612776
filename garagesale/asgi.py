"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe
  `garagesale.asgi:app`.
- Toute la configuration (routes, middlewares, passerelle de paiement, lifespan) est
  centralisée dans garagesale.app_setup.factory.
"""
import logging

from garagesale.app_setup.factory import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()
