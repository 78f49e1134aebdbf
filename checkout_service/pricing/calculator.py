"""
Calcul de prix du panier (pur, synchrone, sans effet de bord).
- Montants en Decimal, arrondis au centime (ROUND_HALF_UP).
- Recalculé à chaque lecture: aucune mise en cache.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Mapping, Optional, Union

from .models import PriceQuote, QuoteLine, TicketTypeRef

CENT = Decimal("0.01")
Number = Union[Decimal, int, float, str]

# module checkout_service.pricing.calculator
def _index(ticket_types: Iterable[TicketTypeRef]) -> Dict[str, TicketTypeRef]:
    return {t.id: t for t in ticket_types}

def clamp_percentage(discount_percentage: Optional[Number]) -> Decimal:
    """
    Ramène un pourcentage de remise dans [0, 100].
    - None / valeur illisible -> 0 (aucune remise).
    """
    if discount_percentage is None:
        return Decimal("0")
    try:
        value = Decimal(str(discount_percentage))
    except Exception:
        return Decimal("0")
    if value.is_nan() or value < 0:
        return Decimal("0")
    return min(value, Decimal("100"))

def prune_cart(cart: Mapping[str, int]) -> Dict[str, int]:
    """Retire les lignes à quantité nulle ou négative (avant soumission)."""
    return {str(tid): int(qty) for tid, qty in (cart or {}).items() if int(qty or 0) > 0}

def ticket_count(cart: Mapping[str, int]) -> int:
    """Nombre total de billets: somme des quantités positives."""
    return sum(prune_cart(cart).values())

def subtotal(cart: Mapping[str, int], ticket_types: Iterable[TicketTypeRef]) -> Decimal:
    """
    Somme quantité x prix unitaire.
    - Les types inconnus contribuent 0 (pas d'erreur).
    """
    by_id = _index(ticket_types)
    total_amount = Decimal("0")
    for tid, qty in prune_cart(cart).items():
        ticket_type = by_id.get(tid)
        if ticket_type is None:
            continue
        total_amount += ticket_type.price * qty
    return total_amount.quantize(CENT, rounding=ROUND_HALF_UP)

def discount_amount(subtotal_amount: Decimal, discount_percentage: Optional[Number] = None) -> Decimal:
    pct = clamp_percentage(discount_percentage)
    return (Decimal(subtotal_amount) * pct / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)

def total(subtotal_amount: Decimal, discount: Decimal) -> Decimal:
    return max(Decimal(subtotal_amount) - Decimal(discount), Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP)

def quote(
    cart: Mapping[str, int],
    ticket_types: Iterable[TicketTypeRef],
    discount_percentage: Optional[Number] = None,
) -> PriceQuote:
    """
    Construit le récapitulatif complet affiché à côté du formulaire.
    - lines: une ligne par type connu présent dans le panier.
    - discount_percentage est borné avant usage.
    """
    types = list(ticket_types)
    by_id = _index(types)
    lines = []
    for tid, qty in prune_cart(cart).items():
        ticket_type = by_id.get(tid)
        if ticket_type is None:
            continue
        lines.append(QuoteLine(
            ticket_type_id=tid,
            name=ticket_type.name,
            quantity=qty,
            unit_price=ticket_type.price,
            amount=(ticket_type.price * qty).quantize(CENT, rounding=ROUND_HALF_UP),
        ))
    pct = clamp_percentage(discount_percentage)
    sub = subtotal(cart, types)
    discount = discount_amount(sub, pct)
    return PriceQuote(
        lines=tuple(lines),
        subtotal=sub,
        discount_percentage=pct,
        discount_amount=discount,
        total=total(sub, discount),
        ticket_count=ticket_count(cart),
    )

def adjust_quantity(cart: Mapping[str, int], ticket_type_id: str, delta: int, max_per_type: int) -> Dict[str, int]:
    """
    Retourne un nouveau panier où la quantité du type est décalée de delta.
    - Bornée à [0, max_per_type]; une quantité 0 retire la ligne.
    """
    updated = prune_cart(cart)
    current = updated.get(ticket_type_id, 0)
    new_value = max(0, min(max_per_type, current + int(delta)))
    if new_value == 0:
        updated.pop(ticket_type_id, None)
    else:
        updated[ticket_type_id] = new_value
    return updated
