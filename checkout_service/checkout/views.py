"""
Endpoints API du checkout (JSON), un checkout par session navigateur.
- L'identifiant du checkout vit dans le cookie de session (SessionMiddleware).
- Chaque réponse renvoie l'instantané en lecture seule: étape, paiement, récapitulatif.
- Les erreurs des appels distants sont dans l'instantané (error / payment.message);
  seules les actions impossibles répondent 4xx (voir app_setup.exceptions).
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from .models import CheckoutSession
from .service import CheckoutFlow
from .store import CheckoutStore
from checkout_service.errors import CheckoutSessionNotFoundError
from checkout_service.orders.models import AttendeeDetails
from checkout_service.promo import service as promo_service
from checkout_service.promo.models import PromoSource
from checkout_service.utils.rate_limit import optional_rate_limit
from checkout_service.utils.security import extract_access_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

SESSION_KEY = "checkout_id"


class TicketTypeIn(BaseModel):
    id: str
    name: str = "Billet"
    price: Decimal = Field(..., ge=0, allow_inf_nan=False)


class StartCheckoutRequest(BaseModel):
    event: Dict[str, Any]
    ticket_types: List[TicketTypeIn]
    selected_tickets: Dict[str, int]
    promo_code: Optional[str] = None
    # "url": code d'un lien de parrainage (verrouillé), "manual": saisi sur la page événement
    promo_source: PromoSource = PromoSource.MANUAL
    attendee: Optional[AttendeeDetails] = None


class PromoCodeRequest(BaseModel):
    code: str = ""


class AdjustQuantityRequest(BaseModel):
    ticket_type_id: str
    delta: int = Field(..., ge=-100, le=100)


def get_store(request: Request) -> CheckoutStore:
    return request.app.state.checkouts

def current_flow(request: Request, store: CheckoutStore = Depends(get_store)) -> CheckoutFlow:
    flow = store.get(request.session.get(SESSION_KEY))
    if flow is None:
        raise CheckoutSessionNotFoundError()
    return flow

# module checkout_service.checkout.views
@router.post("", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
async def start_checkout(
    payload: StartCheckoutRequest,
    request: Request,
    store: CheckoutStore = Depends(get_store),
):
    """
    Démarre un checkout depuis la page événement.
    - Remplace (et démonte) un éventuel checkout précédent du même navigateur.
    - Prix invalide (négatif, NaN, infini): 422 avant toute création.
    - Code promo validé une seule fois (lien de parrainage: verrouillé).
    """
    store.discard(request.session.get(SESSION_KEY))
    session = CheckoutSession.from_payload(
        event=payload.event,
        ticket_types=[t.model_dump() for t in payload.ticket_types],
        selected_tickets=payload.selected_tickets,
        attendee=payload.attendee,
        access_token=extract_access_token(request),
    )
    if payload.promo_source == PromoSource.URL:
        session.promo = await promo_service.apply_from_url(
            payload.promo_code or "", session.event.id, session.access_token
        )
    else:
        session.promo = await promo_service.apply_manual(
            None, payload.promo_code or "", session.event.id, session.access_token
        )
    flow = CheckoutFlow(session)
    request.session[SESSION_KEY] = store.add(flow)
    logger.info("Checkout démarré event_id=%s tickets=%s", session.event.id, sum(session.cart.values()))
    return await flow.load()

@router.get("")
def get_checkout(flow: CheckoutFlow = Depends(current_flow)):
    """Instantané courant (étape, statut de paiement, récapitulatif)."""
    return flow.snapshot()

@router.put("/promo")
async def set_promo_code(body: PromoCodeRequest, flow: CheckoutFlow = Depends(current_flow)):
    """
    Saisie manuelle d'un code promo.
    - 409 si le code courant vient d'un lien de parrainage (verrouillé).
    - Code vide: efface le code courant.
    """
    return await flow.set_promo_code(body.code)

@router.put("/attendee")
def update_attendee(body: AttendeeDetails, flow: CheckoutFlow = Depends(current_flow)):
    return flow.update_attendee(body)

@router.post("/cart/adjust")
def adjust_cart(body: AdjustQuantityRequest, flow: CheckoutFlow = Depends(current_flow)):
    return flow.adjust_quantity(body.ticket_type_id, body.delta)

@router.post("/submit", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def submit_checkout(flow: CheckoutFlow = Depends(current_flow)):
    """
    Crée la commande et déclenche le push M-Pesa.
    - 409 si une soumission est déjà en cours (double clic).
    """
    return await flow.submit()

@router.post("/confirm")
async def confirm_payment(flow: CheckoutFlow = Depends(current_flow)):
    """Action "j'ai terminé le paiement": vérification immédiate du statut."""
    return await flow.confirm_now()

@router.post("/restart")
def restart_checkout(flow: CheckoutFlow = Depends(current_flow)):
    """Après un paiement échoué/annulé: retour aux coordonnées pour réessayer."""
    return flow.restart()

@router.delete("")
def leave_checkout(request: Request, store: CheckoutStore = Depends(get_store)):
    """Départ de la page: démonte le checkout (minuteur arrêté) et efface la session."""
    found = store.discard(request.session.pop(SESSION_KEY, None))
    return {"ok": True, "discarded": found}
