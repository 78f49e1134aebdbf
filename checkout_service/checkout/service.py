"""
Orchestration du checkout pour une session: prix, code promo, commande,
push de paiement et suivi jusqu'à la confirmation.

Toutes les erreurs des appels distants sont converties en état affichable
(erreur de l'étape Details ou message du suivi de paiement); seules les
actions impossibles à l'étape courante lèvent une CheckoutError.
"""
from typing import Any, Dict, Optional
import asyncio
import logging

from .models import CheckoutSession
from .state import CheckoutStateMachine, ConfirmationStep, DetailsStep, PaymentStep
from checkout_service import config
from checkout_service.errors import (
    CheckoutError,
    CheckoutSessionNotFoundError,
    CheckoutValidationError,
    InvalidTransitionError,
    SubmissionInProgressError,
)
from checkout_service.orders.models import AttendeeDetails
from checkout_service.orders.service import OrderSubmitter
from checkout_service.payments.initiator import PaymentInitiator
from checkout_service.payments.models import Cancelled, Completed, Failed, PollerState
from checkout_service.payments.poller import PaymentStatusPoller, Sleep
from checkout_service.pricing import adjust_quantity, ticket_count
from checkout_service.promo import service as promo_service
from checkout_service.promo.models import PromoStatus

logger = logging.getLogger(__name__)

MSG_ORDER_FAILED = "Impossible de créer la commande, veuillez réessayer"


class CheckoutFlow:
    def __init__(
        self,
        session: CheckoutSession,
        *,
        poll_interval: Optional[float] = None,
        poll_max_attempts: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.session: Optional[CheckoutSession] = session
        self.event = session.event
        self.machine = CheckoutStateMachine()
        self.submitter = OrderSubmitter()
        self.initiator = PaymentInitiator()
        self.poller: Optional[PaymentStatusPoller] = None
        self.closed = False
        self._poll_interval = poll_interval if poll_interval is not None else config.PAYMENT_POLL_INTERVAL_SECONDS
        self._poll_max_attempts = poll_max_attempts or config.PAYMENT_POLL_MAX_ATTEMPTS
        self._sleep = sleep

    # --- helpers ---

    def _require_session(self) -> CheckoutSession:
        if self.session is None or self.closed:
            raise CheckoutSessionNotFoundError()
        return self.session

    def _require_details(self, action: str) -> CheckoutSession:
        session = self._require_session()
        if not isinstance(self.machine.state, DetailsStep):
            raise InvalidTransitionError(f"Action '{action}' impossible à l'étape {self.machine.step.value}")
        return session

    def _destroy_session(self) -> None:
        # Le panier ne doit plus pouvoir être soumis
        self.session = None

    @property
    def payment_state(self) -> Optional[PollerState]:
        return self.poller.state if self.poller is not None else None

    @property
    def finished(self) -> bool:
        """Paiement confirmé: plus rien à piloter, seule la confirmation reste lisible."""
        return isinstance(self.machine.state, ConfirmationStep)

    @property
    def polling(self) -> bool:
        return self.poller is not None and self.poller.running

    # --- lecture ---

    def snapshot(self) -> Dict[str, Any]:
        """État en lecture seule exposé à l'interface."""
        state = self.machine.state
        data: Dict[str, Any] = {
            "step": state.step.value,
            "error": state.error if isinstance(state, DetailsStep) else None,
            "event": self.event.to_dict(),
            "transaction": None,
            "payment": None,
            "session": None,
            "submitting": self.submitter.in_flight,
            "can_submit": False,
            "can_restart": self.can_restart,
        }
        if isinstance(state, (PaymentStep, ConfirmationStep)):
            data["transaction"] = state.transaction.to_dict()
        if isinstance(state, ConfirmationStep):
            data["attendee_email"] = state.attendee_email
        if self.poller is not None:
            pstate = self.poller.state
            data["payment"] = {
                "status": pstate.status.value,
                "message": self.poller.message,
                "attempts": self.poller.timer_queries,
                "max_attempts": self.poller.max_attempts,
                "failure_reason": pstate.reason.value if isinstance(pstate, Failed) else None,
                "checking": self.poller.manual_check_in_flight,
            }
        if self.session is not None:
            session = self.session
            data["session"] = {
                "cart": dict(session.cart),
                "ticket_types": [
                    {"id": t.id, "name": t.name, "price": f"{t.price:.2f}"} for t in session.ticket_types
                ],
                "promo": session.promo.to_dict() if session.promo is not None else None,
                "attendee": session.attendee.model_dump(),
                "quote": session.quote().to_dict(),
                "currency": config.CURRENCY,
            }
            data["can_submit"] = (
                isinstance(state, DetailsStep)
                and not self.submitter.in_flight
                and ticket_count(session.cart) >= 1
                and not session.attendee.missing_fields()
            )
        return data

    @property
    def can_restart(self) -> bool:
        return isinstance(self.machine.state, PaymentStep) and isinstance(self.payment_state, (Failed, Cancelled))

    # --- étape Details ---

    async def load(self) -> Dict[str, Any]:
        """Fin de chargement de la session: vérifie le code promo s'il ne l'a pas encore été."""
        session = self._require_session()
        if session.promo is not None and session.promo.status == PromoStatus.UNCHECKED:
            session.promo = await promo_service.revalidate(session.promo, self.event.id, session.access_token)
        return self.snapshot()

    async def set_promo_code(self, code: str) -> Dict[str, Any]:
        session = self._require_details("set_promo_code")
        session.promo = await promo_service.apply_manual(session.promo, code, self.event.id, session.access_token)
        return self.snapshot()

    def update_attendee(self, attendee: AttendeeDetails) -> Dict[str, Any]:
        session = self._require_details("update_attendee")
        session.attendee = attendee
        self.machine.clear_error()
        return self.snapshot()

    def adjust_quantity(self, ticket_type_id: str, delta: int) -> Dict[str, Any]:
        session = self._require_details("adjust_quantity")
        if not session.has_ticket_type(ticket_type_id):
            raise CheckoutValidationError("Type de billet inconnu pour cet événement")
        session.cart = adjust_quantity(session.cart, ticket_type_id, delta, config.MAX_TICKETS_PER_TYPE)
        return self.snapshot()

    # --- soumission et paiement ---

    async def submit(self) -> Dict[str, Any]:
        """
        Crée la commande puis déclenche le push de paiement.
        - Erreur de saisie / refus de commande / panne: reste en Details avec le message.
        - Push refusé: Payment + failed (initiation), le suivi n'est jamais lancé.
        - Push accepté: Payment + processing, le minuteur démarre.
        """
        session = self._require_details("submit")
        try:
            transaction = await self.submitter.submit(
                session.cart, session.attendee, session.promo, session.access_token
            )
        except SubmissionInProgressError:
            raise
        except CheckoutError as e:
            self.machine.fail_details(e.message)
            return self.snapshot()
        except Exception:
            logger.exception("checkout.service.submit failed event_id=%s", self.event.id)
            self.machine.fail_details(MSG_ORDER_FAILED)
            return self.snapshot()

        if self.closed:
            # Session quittée pendant la création: rien à piloter
            logger.warning("Checkout fermé avant le paiement transaction_id=%s", transaction.id)
            return self.snapshot()

        self.machine.to_payment(transaction)
        self.poller = PaymentStatusPoller(
            transaction.id,
            interval=self._poll_interval,
            max_attempts=self._poll_max_attempts,
            on_terminal=self._on_payment_terminal,
            access_token=session.access_token,
            sleep=self._sleep,
        )
        push = await self.initiator.initiate(transaction.id, session.access_token)
        if self.closed:
            return self.snapshot()
        if push.accepted:
            self.poller.start()
        else:
            self.poller.fail_initiation(push.message)
        return self.snapshot()

    def _on_payment_terminal(self, outcome: PollerState) -> None:
        if not isinstance(outcome, Completed):
            return
        if not isinstance(self.machine.state, PaymentStep):
            return
        email = self.session.attendee.email if self.session is not None else ""
        self.machine.to_confirmation(email)
        # Effacé seulement après confirmation du paiement
        self._destroy_session()

    async def confirm_now(self) -> Dict[str, Any]:
        """
        Action "j'ai payé": vérification immédiate.
        - Sans effet si une vérification est déjà en cours ou si le paiement est déjà confirmé.
        """
        if isinstance(self.machine.state, ConfirmationStep):
            return self.snapshot()
        if not isinstance(self.machine.state, PaymentStep) or self.poller is None:
            raise InvalidTransitionError(f"Aucun paiement en cours à l'étape {self.machine.step.value}")
        await self.poller.check_now()
        return self.snapshot()

    def restart(self) -> Dict[str, Any]:
        """Retour aux coordonnées après un paiement échoué/annulé (nouvelle commande)."""
        self._require_session()
        self.machine.back_to_details(self.payment_state)
        self.poller = None
        self.initiator = PaymentInitiator()
        return self.snapshot()

    def teardown(self) -> None:
        """Départ de la page / arrêt de l'hôte: arrête le minuteur et efface la session."""
        if self.poller is not None:
            self.poller.stop()
        self.closed = True
        self._destroy_session()
