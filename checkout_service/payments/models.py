"""
États du paiement mobile (push M-Pesa) et de son suivi.

Le statut fait foi côté serveur: le client ne fait que relayer le dernier
statut observé. L'état du suivi est une union étiquetée: chaque variante
ne porte que les champs qui ont un sens pour elle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED)

    @classmethod
    def parse(cls, value: Optional[str]) -> "PaymentStatus":
        """Statut inconnu ou absent -> PENDING (non terminal, on continue d'attendre)."""
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.PENDING


class FailureReason(str, Enum):
    DECLINED = "failed"
    TIMEOUT = "timeout"
    INITIATION = "initiation"


MSG_PROCESSING = "Validez le paiement sur votre téléphone: saisissez votre code PIN M-Pesa"
MSG_COMPLETED = "Paiement confirmé"
MSG_FAILED = "Le paiement a échoué"
MSG_CANCELLED = "Paiement annulé depuis votre téléphone"
MSG_TIMEOUT = "Délai de paiement dépassé: aucune confirmation reçue"
MSG_INITIATION_FAILED = "Impossible d'envoyer la demande de paiement M-Pesa"
MSG_STILL_PROCESSING = "Paiement toujours en cours: validez d'abord la demande sur votre téléphone"
MSG_CHECK_UNAVAILABLE = "Vérification impossible pour le moment, réessayez dans quelques instants"


@dataclass(frozen=True)
class Pending:
    status: ClassVar[PaymentStatus] = PaymentStatus.PENDING
    terminal: ClassVar[bool] = False

    @property
    def message(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Processing:
    status: ClassVar[PaymentStatus] = PaymentStatus.PROCESSING
    terminal: ClassVar[bool] = False
    attempts: int = 0

    @property
    def message(self) -> str:
        return MSG_PROCESSING


@dataclass(frozen=True)
class Completed:
    status: ClassVar[PaymentStatus] = PaymentStatus.COMPLETED
    terminal: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return MSG_COMPLETED


@dataclass(frozen=True)
class Failed:
    status: ClassVar[PaymentStatus] = PaymentStatus.FAILED
    terminal: ClassVar[bool] = True
    reason: FailureReason = FailureReason.DECLINED
    message: str = MSG_FAILED


@dataclass(frozen=True)
class Cancelled:
    status: ClassVar[PaymentStatus] = PaymentStatus.CANCELLED
    terminal: ClassVar[bool] = True
    message: str = MSG_CANCELLED


PollerState = Union[Pending, Processing, Completed, Failed, Cancelled]


def terminal_state_for(status: PaymentStatus) -> PollerState:
    """Variante terminale correspondant à un statut serveur terminal."""
    if status == PaymentStatus.COMPLETED:
        return Completed()
    if status == PaymentStatus.CANCELLED:
        return Cancelled()
    if status == PaymentStatus.FAILED:
        return Failed(reason=FailureReason.DECLINED)
    raise ValueError(f"Statut non terminal: {status.value}")


@dataclass(frozen=True)
class PushResult:
    """Réponse à la demande de push: confirme seulement l'envoi de l'invite."""

    accepted: bool
    message: Optional[str] = None
