"""
Suivi asynchrone du paiement mobile par interrogation périodique.

Le poller possède sa propre tâche asyncio (le minuteur). Elle est libérée
sur toutes les sorties: succès, échec, annulation, dépassement du plafond
de tentatives et arrêt par l'hôte (stop()).

Deux chemins peuvent interroger le statut: le minuteur et la vérification
manuelle ("j'ai payé"). Les deux convergent vers _transition(), qui ne
s'applique qu'une fois: après un état terminal, ou après stop(), toute
réponse tardive est ignorée.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional
import asyncio
import logging

from . import repository
from .models import (
    Failed,
    FailureReason,
    MSG_CHECK_UNAVAILABLE,
    MSG_INITIATION_FAILED,
    MSG_STILL_PROCESSING,
    MSG_TIMEOUT,
    PaymentStatus,
    Pending,
    PollerState,
    Processing,
    terminal_state_for,
)
from checkout_service.config import PAYMENT_POLL_INTERVAL_SECONDS, PAYMENT_POLL_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

TerminalCallback = Callable[[PollerState], None]
Sleep = Callable[[float], Awaitable[None]]


class PaymentStatusPoller:
    """
    Machine à états pending -> processing -> {completed | failed | cancelled}.
    - interval / max_attempts: plafond total = interval x max_attempts
    - on_terminal: appelé une seule fois, à l'entrée dans l'état terminal
    - sleep: injectable (tests)
    """

    def __init__(
        self,
        transaction_id: str,
        *,
        interval: float = PAYMENT_POLL_INTERVAL_SECONDS,
        max_attempts: int = PAYMENT_POLL_MAX_ATTEMPTS,
        on_terminal: Optional[TerminalCallback] = None,
        access_token: Optional[str] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.transaction_id = transaction_id
        self.interval = interval
        self.max_attempts = max_attempts
        self.state: PollerState = Pending()
        # Message non terminal issu de la vérification manuelle
        self.notice: Optional[str] = None
        self.timer_queries = 0
        self._on_terminal = on_terminal
        self._access_token = access_token
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._manual_in_flight = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def manual_check_in_flight(self) -> bool:
        return self._manual_in_flight

    @property
    def message(self) -> Optional[str]:
        return self.notice or self.state.message

    # --- cycle de vie du minuteur ---

    def start(self) -> None:
        """Passe en processing et lance le minuteur (une seule fois)."""
        if self._task is not None or self._stopped or self.state.terminal:
            raise RuntimeError("Poller already started or finished")
        self.state = Processing(attempts=0)
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"payment-poller-{self.transaction_id}"
        )
        logger.info("Suivi du paiement démarré transaction_id=%s", self.transaction_id)

    def stop(self) -> None:
        """
        Arrête le minuteur (idempotent).
        - Une requête déjà en vol n'est pas annulable côté serveur: son résultat sera ignoré.
        """
        self._stopped = True
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def wait(self) -> PollerState:
        """Attend la fin du minuteur (terminal, plafond atteint ou stop())."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state

    @asynccontextmanager
    async def running_scope(self) -> AsyncIterator["PaymentStatusPoller"]:
        """Acquisition bornée du minuteur: stop() garanti en sortie de bloc."""
        self.start()
        try:
            yield self
        finally:
            self.stop()

    # --- transitions ---

    def fail_initiation(self, message: Optional[str] = None) -> bool:
        """Échec du push: état failed immédiat, le minuteur n'est jamais lancé."""
        return self._transition(Failed(reason=FailureReason.INITIATION, message=message or MSG_INITIATION_FAILED))

    def _transition(self, new_state: PollerState) -> bool:
        if self.state.terminal or self._stopped:
            # Réponse tardive ou seconde convergence: ignorée
            return False
        self.state = new_state
        self.notice = None
        self.stop()
        logger.info(
            "Paiement terminé transaction_id=%s status=%s", self.transaction_id, new_state.status.value
        )
        if self._on_terminal is not None:
            try:
                self._on_terminal(new_state)
            except Exception:
                logger.exception("on_terminal callback failed transaction_id=%s", self.transaction_id)
        return True

    # --- chemin minuteur ---

    async def _run(self) -> None:
        while self.timer_queries < self.max_attempts:
            await self._sleep(self.interval)
            if self._stopped or self.state.terminal:
                return
            await self._tick()

    async def _tick(self) -> None:
        self.timer_queries += 1
        attempt = self.timer_queries
        status: Optional[PaymentStatus] = None
        try:
            status = await repository.get_transaction_status(self.transaction_id, self._access_token)
        except Exception as e:
            # Erreur transitoire: pas un échec de paiement, on continue au prochain tick
            logger.warning(
                "Statut indisponible transaction_id=%s attempt=%s/%s: %s",
                self.transaction_id, attempt, self.max_attempts, e,
            )
        if self._stopped or self.state.terminal:
            return
        if status is not None and status.terminal:
            self._transition(terminal_state_for(status))
            return
        if attempt >= self.max_attempts:
            self._transition(Failed(reason=FailureReason.TIMEOUT, message=MSG_TIMEOUT))
            return
        self.state = Processing(attempts=attempt)

    # --- chemin manuel ---

    async def check_now(self) -> Optional[PollerState]:
        """
        Vérification immédiate demandée par l'acheteur.
        - Sans effet (None) si une vérification manuelle est déjà en vol.
        - Statut terminal -> même transition que le minuteur (qui est arrêté).
        - Statut non terminal -> message "toujours en cours", état inchangé.
        """
        if self._manual_in_flight:
            return None
        if not isinstance(self.state, Processing) or self._stopped:
            return self.state
        self._manual_in_flight = True
        try:
            status = await repository.get_transaction_status(self.transaction_id, self._access_token)
        except Exception as e:
            logger.warning("Vérification manuelle impossible transaction_id=%s: %s", self.transaction_id, e)
            if not self.state.terminal:
                self.notice = MSG_CHECK_UNAVAILABLE
            return self.state
        finally:
            self._manual_in_flight = False
        if status.terminal:
            self._transition(terminal_state_for(status))
        elif not self.state.terminal and not self._stopped:
            self.notice = MSG_STILL_PROCESSING
        return self.state
