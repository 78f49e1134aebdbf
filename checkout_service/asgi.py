"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe
  `checkout_service.asgi:app`.
- Un seul worker: les checkouts en cours et leurs minuteurs vivent en mémoire du processus.
"""

from checkout_service.app_setup.factory import create_app

app = create_app()
