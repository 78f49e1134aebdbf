"""
Module 'pricing': point d'entrée public du calcul de prix du panier.
"""

from .models import TicketTypeRef, PriceQuote, QuoteLine
from .calculator import (
    clamp_percentage,
    prune_cart,
    ticket_count,
    subtotal,
    discount_amount,
    total,
    quote,
    adjust_quantity,
)

__all__ = [
    # models
    "TicketTypeRef",
    "PriceQuote",
    "QuoteLine",
    # calculator
    "clamp_percentage",
    "prune_cart",
    "ticket_count",
    "subtotal",
    "discount_amount",
    "total",
    "quote",
    "adjust_quantity",
]
