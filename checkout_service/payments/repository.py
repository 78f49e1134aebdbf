"""
Accès API pour le paiement mobile: déclenchement du push et lecture du statut.
"""
from typing import Optional
import logging
import httpx

import checkout_service.infra.api_client as api_client
from checkout_service.errors import ApiUnavailableError
from .models import PaymentStatus, PushResult

logger = logging.getLogger(__name__)

# module checkout_service.payments.repository
async def initiate_push(transaction_id: str, access_token: Optional[str] = None) -> PushResult:
    """
    Déclenche le push M-Pesa (STK): POST /api/v1/payments/initiate-mpesa?transaction_id=...
    - Retour: PushResult(accepted=<success>, message)
    - 4xx: refus explicite -> accepted=False avec le message de l'API
    - réseau / 5xx -> ApiUnavailableError
    """
    try:
        resp = await api_client.get_api_client().post(
            "/api/v1/payments/initiate-mpesa",
            params={"transaction_id": transaction_id},
            headers=api_client.auth_headers(access_token),
        )
    except httpx.HTTPError as e:
        logger.exception("payments.repository.initiate_push failed transaction_id=%s", transaction_id)
        raise ApiUnavailableError("Service de paiement injoignable") from e

    if 400 <= resp.status_code < 500:
        return PushResult(accepted=False, message=api_client.error_detail(resp, "Demande de paiement refusée"))
    if resp.status_code >= 500:
        logger.error("initiate_push failed: status=%s body=%s", resp.status_code, resp.text)
        raise ApiUnavailableError("Service de paiement indisponible")

    try:
        data = resp.json() or {}
    except ValueError as e:
        raise ApiUnavailableError("Réponse invalide du service de paiement") from e
    accepted = bool(data.get("success", data.get("accepted", False)))
    return PushResult(accepted=accepted, message=data.get("message"))

async def get_transaction_status(transaction_id: str, access_token: Optional[str] = None) -> PaymentStatus:
    """
    Lit le statut de la transaction: GET /api/v1/payments/transaction/{id}
    - Retour: PaymentStatus (statut inconnu -> PENDING)
    - Toute erreur (réseau, 4xx, 5xx) -> ApiUnavailableError (erreur transitoire pour le polling)
    """
    try:
        resp = await api_client.get_api_client().get(
            f"/api/v1/payments/transaction/{transaction_id}",
            headers=api_client.auth_headers(access_token),
        )
    except httpx.HTTPError as e:
        raise ApiUnavailableError("Service de paiement injoignable") from e
    if resp.status_code >= 400:
        raise ApiUnavailableError(api_client.error_detail(resp, f"Statut indisponible (HTTP {resp.status_code})"))
    try:
        data = resp.json() or {}
    except ValueError as e:
        raise ApiUnavailableError("Réponse invalide du service de paiement") from e
    return PaymentStatus.parse(data.get("status"))
