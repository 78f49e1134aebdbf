"""
Cas d'usage 'orders': transforme le panier en une commande unique et la soumet.
"""
from typing import Any, Dict, Mapping, Optional
import logging

from . import repository
from .models import AttendeeDetails, Transaction
from checkout_service.errors import CheckoutValidationError, SubmissionInProgressError
from checkout_service.pricing import prune_cart, ticket_count
from checkout_service.promo.models import PromoCode

logger = logging.getLogger(__name__)

_FIELD_LABELS = {"name": "nom complet", "email": "adresse email", "phone": "numéro de téléphone"}


def check_preconditions(cart: Mapping[str, int], attendee: AttendeeDetails) -> None:
    """
    Vérifie la saisie avant tout appel réseau.
    - Au moins un billet; nom, email et téléphone renseignés.
    """
    if ticket_count(cart) < 1:
        raise CheckoutValidationError("Veuillez sélectionner au moins un billet")
    missing = attendee.missing_fields()
    if missing:
        labels = ", ".join(_FIELD_LABELS[f] for f in missing)
        raise CheckoutValidationError(f"Champs obligatoires manquants: {labels}")


def build_payload(cart: Mapping[str, int], attendee: AttendeeDetails, promo: Optional[PromoCode]) -> Dict[str, Any]:
    """
    Corps purchase-cart: une seule commande couvrant tous les types du panier.
    - Un code confirmé invalide n'est pas transmis.
    """
    payload: Dict[str, Any] = {
        "items": repository.build_items(prune_cart(cart)),
        "attendee_name": attendee.name.strip(),
        "attendee_email": attendee.email.strip(),
        "attendee_phone": attendee.phone.strip(),
        "use_loyalty_credits": False,
    }
    if promo is not None and promo.forwardable:
        payload["promoter_code"] = promo.code
    return payload


class OrderSubmitter:
    """
    Soumet la commande une seule fois par action de l'acheteur.
    Un second appel pendant qu'une soumission est en vol est refusé
    (double clic), sans nouvel appel réseau.
    """

    def __init__(self) -> None:
        self.in_flight = False

    async def submit(
        self,
        cart: Mapping[str, int],
        attendee: AttendeeDetails,
        promo: Optional[PromoCode] = None,
        access_token: Optional[str] = None,
    ) -> Transaction:
        if self.in_flight:
            raise SubmissionInProgressError()
        check_preconditions(cart, attendee)
        payload = build_payload(cart, attendee, promo)
        self.in_flight = True
        try:
            data = await repository.create_order(payload, access_token)
        finally:
            self.in_flight = False
        transaction = Transaction.from_api(data)
        logger.info("Commande créée transaction_id=%s tickets=%s", transaction.id, len(transaction.tickets))
        return transaction
