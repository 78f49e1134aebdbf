"""
Étapes du checkout: Details -> Payment -> Confirmation.

Union étiquetée: une étape ne porte que ce qui a un sens pour elle
(pas de transaction en Details, pas d'erreur en Confirmation).
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union
import logging

from checkout_service.errors import InvalidTransitionError
from checkout_service.orders.models import Transaction
from checkout_service.payments.models import Cancelled, Failed, PollerState

logger = logging.getLogger(__name__)


class CheckoutStep(str, Enum):
    DETAILS = "details"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class DetailsStep:
    step: ClassVar[CheckoutStep] = CheckoutStep.DETAILS
    error: Optional[str] = None


@dataclass(frozen=True)
class PaymentStep:
    step: ClassVar[CheckoutStep] = CheckoutStep.PAYMENT
    transaction: Transaction


@dataclass(frozen=True)
class ConfirmationStep:
    step: ClassVar[CheckoutStep] = CheckoutStep.CONFIRMATION
    transaction: Transaction
    attendee_email: str


StepState = Union[DetailsStep, PaymentStep, ConfirmationStep]


class CheckoutStateMachine:
    """
    Transitions autorisées:
    - Details -> Details (erreur de saisie/commande), Details -> Payment
    - Payment -> Confirmation
    - Payment -> Details, seulement après un échec/annulation terminal du paiement
    Confirmation est terminal pour la session.
    """

    def __init__(self) -> None:
        self.state: StepState = DetailsStep()

    @property
    def step(self) -> CheckoutStep:
        return self.state.step

    def _require(self, expected: type, action: str) -> None:
        if not isinstance(self.state, expected):
            raise InvalidTransitionError(f"Action '{action}' impossible à l'étape {self.state.step.value}")

    def fail_details(self, error: str) -> None:
        self._require(DetailsStep, "fail_details")
        self.state = DetailsStep(error=error)

    def clear_error(self) -> None:
        if isinstance(self.state, DetailsStep) and self.state.error:
            self.state = DetailsStep()

    def to_payment(self, transaction: Transaction) -> None:
        self._require(DetailsStep, "to_payment")
        self.state = PaymentStep(transaction=transaction)
        logger.info("Checkout -> payment transaction_id=%s", transaction.id)

    def to_confirmation(self, attendee_email: str) -> None:
        self._require(PaymentStep, "to_confirmation")
        self.state = ConfirmationStep(transaction=self.state.transaction, attendee_email=attendee_email)
        logger.info("Checkout -> confirmation transaction_id=%s", self.state.transaction.id)

    def back_to_details(self, payment_outcome: Optional[PollerState]) -> None:
        self._require(PaymentStep, "back_to_details")
        if not isinstance(payment_outcome, (Failed, Cancelled)):
            raise InvalidTransitionError("Retour aux coordonnées possible uniquement après un paiement échoué ou annulé")
        self.state = DetailsStep()
