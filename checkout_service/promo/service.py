"""
Cas d'usage 'promo': application d'un code venu d'un lien ou saisi à la main.
"""
from typing import Optional
import logging

from . import repository
from .models import PromoCode, PromoSource, PromoValidation, normalize_code
from checkout_service.errors import PromoCodeLockedError

logger = logging.getLogger(__name__)

async def validate(code: str, event_id: str, access_token: Optional[str] = None) -> PromoValidation:
    """
    Valide un code pour un événement sans jamais lever d'exception.
    - Code vide -> invalide sans appel réseau.
    """
    normalized = normalize_code(code)
    if not normalized:
        return PromoValidation.invalid()
    try:
        return await repository.validate_promo_code(normalized, event_id, access_token)
    except Exception:
        # Dégradation: code présent mais non confirmé
        logger.exception("promo.service.validate failed code=%s", normalized)
        return PromoValidation.unconfirmed()

async def apply_from_url(code: str, event_id: str, access_token: Optional[str] = None) -> Optional[PromoCode]:
    """Code d'attribution (lien entrant): validé une fois, verrouillé."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    promo = PromoCode(code=normalized, source=PromoSource.URL)
    return promo.with_validation(await validate(normalized, event_id, access_token))

async def apply_manual(
    current: Optional[PromoCode],
    code: str,
    event_id: str,
    access_token: Optional[str] = None,
) -> Optional[PromoCode]:
    """
    Saisie manuelle d'un code par l'acheteur.
    - Refusée si le code courant est verrouillé (parrainage).
    - Une saisie vide efface le code.
    """
    if current is not None and current.locked:
        raise PromoCodeLockedError()
    normalized = normalize_code(code)
    if not normalized:
        return None
    promo = PromoCode(code=normalized, source=PromoSource.MANUAL)
    return promo.with_validation(await validate(normalized, event_id, access_token))

async def revalidate(promo: Optional[PromoCode], event_id: str, access_token: Optional[str] = None) -> Optional[PromoCode]:
    """Re-vérifie un code existant (fin de chargement de session), source conservée."""
    if promo is None or not promo.code:
        return promo
    return promo.with_validation(await validate(promo.code, event_id, access_token))
