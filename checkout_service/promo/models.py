"""Codes promo / parrainage: normalisation et résultat de validation."""

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from checkout_service.pricing import clamp_percentage


class PromoSource(str, Enum):
    URL = "url"
    MANUAL = "manual"


class PromoStatus(str, Enum):
    UNCHECKED = "unchecked"
    VALID = "valid"
    INVALID = "invalid"
    # Vérification impossible (réseau/5xx): code conservé, aucune remise
    UNCONFIRMED = "unconfirmed"


def normalize_code(code: Optional[str]) -> str:
    """Supprime les espaces et passe en majuscules (idempotent)."""
    return (code or "").strip().upper()


@dataclass(frozen=True)
class PromoValidation:
    valid: bool
    discount_percentage: Decimal = Decimal("0")
    # False quand l'API n'a pas pu répondre
    confirmed: bool = True

    @classmethod
    def invalid(cls) -> "PromoValidation":
        return cls(valid=False)

    @classmethod
    def unconfirmed(cls) -> "PromoValidation":
        return cls(valid=False, confirmed=False)


@dataclass(frozen=True)
class PromoCode:
    code: str
    source: PromoSource = PromoSource.MANUAL
    discount_percentage: Decimal = Decimal("0")
    status: PromoStatus = PromoStatus.UNCHECKED

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", normalize_code(self.code))
        object.__setattr__(self, "discount_percentage", clamp_percentage(self.discount_percentage))

    @property
    def locked(self) -> bool:
        """Un code venu d'un lien de parrainage n'est pas modifiable par l'acheteur."""
        return self.source == PromoSource.URL

    @property
    def effective_discount(self) -> Decimal:
        # Seul un code confirmé valide donne droit à une remise
        if self.status == PromoStatus.VALID:
            return self.discount_percentage
        return Decimal("0")

    @property
    def forwardable(self) -> bool:
        """Le code est transmis à la commande (attribution) sauf s'il est confirmé invalide."""
        return bool(self.code) and self.status != PromoStatus.INVALID

    def with_validation(self, result: PromoValidation) -> "PromoCode":
        if not result.confirmed:
            return replace(self, status=PromoStatus.UNCONFIRMED, discount_percentage=Decimal("0"))
        if not result.valid:
            return replace(self, status=PromoStatus.INVALID, discount_percentage=Decimal("0"))
        return replace(self, status=PromoStatus.VALID, discount_percentage=result.discount_percentage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "source": self.source.value,
            "status": self.status.value,
            "discount_percentage": f"{self.effective_discount}",
            "locked": self.locked,
        }
