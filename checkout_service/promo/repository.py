"""
Accès API pour la validation des codes promoteurs.
"""
from typing import Optional
import logging
import httpx

import checkout_service.infra.api_client as api_client
from checkout_service.pricing import clamp_percentage
from .models import PromoValidation

logger = logging.getLogger(__name__)

# Réponses 4xx traitées comme "code inconnu/mal formé" (résultat négatif normal)
_NEGATIVE_STATUSES = {400, 404, 410, 422}

# module checkout_service.promo.repository
async def validate_promo_code(code: str, event_id: str, access_token: Optional[str] = None) -> PromoValidation:
    """
    Demande à l'API si le code est valide pour l'événement et sa remise.
    - GET /api/v1/promoters/codes/validate?code=...&event_id=...
    - 400/404/410/422 ou {"valid": false} -> PromoValidation.invalid()
    - Erreur réseau / 5xx -> PromoValidation.unconfirmed() (n'empêche pas le checkout)
    """
    try:
        resp = await api_client.get_api_client().get(
            "/api/v1/promoters/codes/validate",
            params={"code": code, "event_id": event_id},
            headers=api_client.auth_headers(access_token),
        )
    except httpx.HTTPError:
        logger.exception("promo.repository.validate_promo_code failed code=%s event_id=%s", code, event_id)
        return PromoValidation.unconfirmed()

    if resp.status_code in _NEGATIVE_STATUSES:
        return PromoValidation.invalid()
    if resp.status_code >= 400:
        logger.error("validate_promo_code failed: status=%s body=%s", resp.status_code, resp.text)
        return PromoValidation.unconfirmed()

    try:
        data = resp.json() or {}
    except ValueError:
        logger.error("validate_promo_code: réponse non JSON code=%s", code)
        return PromoValidation.unconfirmed()
    if not data.get("valid"):
        return PromoValidation.invalid()
    return PromoValidation(valid=True, discount_percentage=clamp_percentage(data.get("discount_percentage")))
