"""
Module 'payments' (feature-first): point d'entrée public.
Réunit statuts de paiement, accès API (push, statut), déclenchement et suivi.
"""

from .models import (
    PaymentStatus,
    FailureReason,
    PollerState,
    Pending,
    Processing,
    Completed,
    Failed,
    Cancelled,
    PushResult,
)
from .repository import initiate_push, get_transaction_status
from .initiator import PaymentInitiator
from .poller import PaymentStatusPoller

__all__ = [
    # models
    "PaymentStatus",
    "FailureReason",
    "PollerState",
    "Pending",
    "Processing",
    "Completed",
    "Failed",
    "Cancelled",
    "PushResult",
    # repository
    "initiate_push",
    "get_transaction_status",
    # services
    "PaymentInitiator",
    "PaymentStatusPoller",
]
