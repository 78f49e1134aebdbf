"""Commande: coordonnées de l'acheteur, transaction et billets émis."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel


class AttendeeDetails(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""

    def missing_fields(self) -> List[str]:
        return [f for f in ("name", "email", "phone") if not (getattr(self, f) or "").strip()]


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value if value is not None else 0))
    except InvalidOperation:
        return Decimal("0")


@dataclass(frozen=True)
class IssuedTicket:
    """Billet créé côté API au statut 'pending_payment'."""

    id: str
    ticket_number: str
    ticket_type_id: str
    status: str
    final_price: Decimal

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IssuedTicket":
        return cls(
            id=str(data.get("id") or ""),
            ticket_number=str(data.get("ticket_number") or ""),
            ticket_type_id=str(data.get("ticket_type_id") or ""),
            status=str(data.get("status") or "pending_payment"),
            final_price=_decimal(data.get("final_price")),
        )


@dataclass(frozen=True)
class Transaction:
    """Commande payable reconnue par l'API; jamais modifiée côté client."""

    id: str
    amount_due: Decimal
    tickets: Tuple[IssuedTicket, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Transaction":
        """
        Construit la transaction depuis la réponse purchase-cart.
        - Accepte total_amount ou amount (selon version de l'API).
        """
        tickets = tuple(IssuedTicket.from_dict(t) for t in (data.get("tickets") or []) if isinstance(t, dict))
        amount = data.get("total_amount", data.get("amount"))
        return cls(id=str(data.get("transaction_id") or ""), amount_due=_decimal(amount), tickets=tickets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.id,
            "amount_due": f"{self.amount_due:.2f}",
            "tickets": [
                {
                    "id": t.id,
                    "ticket_number": t.ticket_number,
                    "ticket_type_id": t.ticket_type_id,
                    "status": t.status,
                    "final_price": f"{t.final_price:.2f}",
                }
                for t in self.tickets
            ],
        }
