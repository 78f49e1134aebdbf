"""
Accès API pour la création de commande (panier multi-types en une transaction).
"""
from typing import Any, Dict, List, Optional
import logging
import httpx

import checkout_service.infra.api_client as api_client
from checkout_service.errors import ApiUnavailableError, OrderRejectedError

logger = logging.getLogger(__name__)

# module checkout_service.orders.repository
async def create_order(payload: Dict[str, Any], access_token: Optional[str] = None) -> Dict[str, Any]:
    """
    Crée la commande: POST /api/v1/tickets/purchase-cart.
    - payload: {items: [{ticket_type_id, quantity}], promoter_code?, attendee_*}
    - Retour: le contenu de "data" ({transaction_id, total_amount, tickets[]})
    - 4xx -> OrderRejectedError (message de l'API tel quel)
    - réseau / 5xx -> ApiUnavailableError
    """
    try:
        resp = await api_client.get_api_client().post(
            "/api/v1/tickets/purchase-cart",
            json=payload,
            headers=api_client.auth_headers(access_token),
        )
    except httpx.HTTPError as e:
        logger.exception("orders.repository.create_order failed items=%s", payload.get("items"))
        raise ApiUnavailableError("Service de billetterie injoignable, veuillez réessayer") from e

    if 400 <= resp.status_code < 500:
        raise OrderRejectedError(
            api_client.error_detail(resp, "Impossible de créer la commande"),
            status_code=resp.status_code,
        )
    if resp.status_code >= 500:
        logger.error("create_order failed: status=%s body=%s", resp.status_code, resp.text)
        raise ApiUnavailableError("Impossible de créer la commande, veuillez réessayer")

    try:
        body = resp.json() or {}
    except ValueError as e:
        raise ApiUnavailableError("Réponse invalide du service de billetterie") from e
    data = body.get("data", body) if isinstance(body, dict) else {}
    if not data.get("transaction_id"):
        logger.error("create_order: transaction_id absent body=%s", body)
        raise ApiUnavailableError("Réponse invalide du service de billetterie")
    return data

def build_items(cart: Dict[str, int]) -> List[Dict[str, Any]]:
    return [{"ticket_type_id": tid, "quantity": qty} for tid, qty in cart.items()]
