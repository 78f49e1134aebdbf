"""Codes d'erreur métier du checkout.

Chaque erreur porte un code stable et un message affichable à l'acheteur.
"""

from enum import Enum


class ErrorCode(Enum):
    """Codes d'erreur métier."""

    VALIDATION = "VALIDATION"
    ORDER_REJECTED = "ORDER_REJECTED"
    API_UNAVAILABLE = "API_UNAVAILABLE"
    PROMO_LOCKED = "PROMO_LOCKED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    SUBMISSION_IN_PROGRESS = "SUBMISSION_IN_PROGRESS"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"


class CheckoutError(Exception):
    """Erreur de base avec code et message sûr pour l'utilisateur."""

    code: ErrorCode = ErrorCode.VALIDATION
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class CheckoutValidationError(CheckoutError):
    """Saisie incomplète (panier vide, coordonnées manquantes): aucun appel réseau."""

    code = ErrorCode.VALIDATION
    status_code = 400


class OrderRejectedError(CheckoutError):
    """L'API a refusé la commande (4xx), ex: billets épuisés entre-temps."""

    code = ErrorCode.ORDER_REJECTED
    status_code = 400

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiUnavailableError(CheckoutError):
    """Erreur réseau ou 5xx de l'API distante."""

    code = ErrorCode.API_UNAVAILABLE
    status_code = 502


class PromoCodeLockedError(CheckoutError):
    """Code promo issu d'un lien de parrainage: non modifiable par l'acheteur."""

    code = ErrorCode.PROMO_LOCKED
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Ce code promo provient d'un lien de parrainage et ne peut pas être modifié")


class InvalidTransitionError(CheckoutError):
    code = ErrorCode.INVALID_TRANSITION
    status_code = 409


class SubmissionInProgressError(CheckoutError):
    code = ErrorCode.SUBMISSION_IN_PROGRESS
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Commande déjà en cours de traitement")


class CheckoutSessionNotFoundError(CheckoutError):
    code = ErrorCode.SESSION_NOT_FOUND
    status_code = 404

    def __init__(self) -> None:
        super().__init__("Aucun checkout en cours, veuillez choisir vos billets")
