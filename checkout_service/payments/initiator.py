"""
Déclenchement du push de paiement mobile pour une transaction.
"""
from typing import Optional, Set
import logging

from . import repository
from .models import MSG_INITIATION_FAILED, PushResult
from checkout_service.errors import CheckoutError, InvalidTransitionError

logger = logging.getLogger(__name__)


class PaymentInitiator:
    """
    Envoie la demande de push une seule fois par transaction.
    Ne lève jamais pour un échec distant: renvoie accepted=False.
    L'acceptation confirme seulement l'envoi de l'invite, pas le paiement.
    """

    def __init__(self) -> None:
        self._fired: Set[str] = set()

    async def initiate(self, transaction_id: str, access_token: Optional[str] = None) -> PushResult:
        if transaction_id in self._fired:
            raise InvalidTransitionError("Paiement déjà initié pour cette transaction")
        self._fired.add(transaction_id)
        try:
            result = await repository.initiate_push(transaction_id, access_token)
        except CheckoutError as e:
            return PushResult(accepted=False, message=e.message)
        except Exception:
            logger.exception("payments.initiator.initiate failed transaction_id=%s", transaction_id)
            return PushResult(accepted=False, message=MSG_INITIATION_FAILED)
        if not result.accepted:
            logger.warning("Push refusé transaction_id=%s message=%s", transaction_id, result.message)
            return PushResult(accepted=False, message=result.message or MSG_INITIATION_FAILED)
        logger.info("Push M-Pesa envoyé transaction_id=%s", transaction_id)
        return result
