"""Types du calcul de prix (valeurs immuables, aucune E/S)."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class TicketTypeRef:
    """Type de billet tel que chargé depuis la page événement."""

    id: str
    name: str
    price: Decimal

    def __post_init__(self) -> None:
        if not self.price.is_finite() or self.price < 0:
            raise ValueError("Ticket price must be a finite, non-negative amount")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TicketTypeRef":
        # L'API renvoie le prix en str ("1000.00") ou en nombre
        try:
            price = Decimal(str(data.get("price") or 0))
        except InvalidOperation:
            price = Decimal("0")
        return cls(id=str(data.get("id") or ""), name=str(data.get("name") or "Billet"), price=price)


@dataclass(frozen=True)
class QuoteLine:
    ticket_type_id: str
    name: str
    quantity: int
    unit_price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class PriceQuote:
    """Récapitulatif de commande: lignes, sous-total, remise, total."""

    lines: Tuple[QuoteLine, ...]
    subtotal: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    total: Decimal
    ticket_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines": [
                {
                    "ticket_type_id": line.ticket_type_id,
                    "name": line.name,
                    "quantity": line.quantity,
                    "unit_price": f"{line.unit_price:.2f}",
                    "amount": f"{line.amount:.2f}",
                }
                for line in self.lines
            ],
            "subtotal": f"{self.subtotal:.2f}",
            "discount_percentage": f"{self.discount_percentage}",
            "discount_amount": f"{self.discount_amount:.2f}",
            "total": f"{self.total:.2f}",
            "ticket_count": self.ticket_count,
        }
