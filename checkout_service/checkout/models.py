"""Session de checkout éphémère (une par onglet navigateur)."""

from dataclasses import dataclass, field
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from checkout_service import config
from checkout_service.errors import CheckoutValidationError
from checkout_service.orders.models import AttendeeDetails
from checkout_service.pricing import PriceQuote, TicketTypeRef, prune_cart, quote
from checkout_service.promo.models import PromoCode


@dataclass(frozen=True)
class EventRef:
    """Événement d'origine, affiché dans le récapitulatif."""

    id: str
    title: str
    slug: Optional[str] = None
    start_datetime: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventRef":
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            slug=data.get("slug"),
            start_datetime=data.get("start_datetime"),
            location=data.get("location"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "start_datetime": self.start_datetime,
            "location": self.location,
        }


@dataclass
class CheckoutSession:
    """
    Données lues une fois au montage du checkout.
    - ticket_types: immuables pour la session
    - cart: {ticket_type_id: quantité}, zéros retirés, bornée à MAX_TICKETS_PER_TYPE
    - access_token: transmis à l'API pour agir au nom de l'acheteur (None = invité)
    """

    event: EventRef
    ticket_types: Tuple[TicketTypeRef, ...]
    cart: Dict[str, int]
    promo: Optional[PromoCode] = None
    attendee: AttendeeDetails = field(default_factory=AttendeeDetails)
    access_token: Optional[str] = None

    def __post_init__(self) -> None:
        self.ticket_types = tuple(self.ticket_types)
        self.cart = {
            tid: min(qty, config.MAX_TICKETS_PER_TYPE) for tid, qty in prune_cart(self.cart).items()
        }

    @classmethod
    def from_payload(
        cls,
        event: Dict[str, Any],
        ticket_types: List[Dict[str, Any]],
        selected_tickets: Dict[str, int],
        promo: Optional[PromoCode] = None,
        attendee: Optional[AttendeeDetails] = None,
        access_token: Optional[str] = None,
    ) -> "CheckoutSession":
        try:
            types = tuple(TicketTypeRef.from_dict(t) for t in ticket_types or [])
        except (ValueError, InvalidOperation) as e:
            raise CheckoutValidationError("Prix de billet invalide") from e
        return cls(
            event=EventRef.from_dict(event or {}),
            ticket_types=types,
            cart=dict(selected_tickets or {}),
            promo=promo,
            attendee=attendee or AttendeeDetails(),
            access_token=access_token,
        )

    def has_ticket_type(self, ticket_type_id: str) -> bool:
        return any(t.id == ticket_type_id for t in self.ticket_types)

    def quote(self) -> PriceQuote:
        discount = self.promo.effective_discount if self.promo is not None else None
        return quote(self.cart, self.ticket_types, discount)
