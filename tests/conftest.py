import os
import asyncio
import pytest
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional, Union
from fastapi.testclient import TestClient

# Pas de Redis en tests: rate limiting désactivé au démarrage
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from checkout_service.app_setup.factory import create_app
from checkout_service.payments.models import PaymentStatus, PushResult
from checkout_service.promo.models import PromoValidation

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/") or nodeid.startswith("unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/") or nodeid.startswith("integration/"):
            item.add_marker(pytest.mark.integration)

@pytest.fixture()
def app():
    return create_app()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


class FakeTicketingApi:
    """
    Remplace les 4 appels distants (commande, push, statut, code promo).
    - statuses: file de statuts (ou exceptions) consommée à chaque lecture; vide -> PROCESSING
    - gate: si défini, la lecture du statut attend ce signal (requête "en vol")
    """

    def __init__(self) -> None:
        self.order_response: Dict[str, Any] = {
            "transaction_id": "tx-1",
            "total_amount": "2000.00",
            "tickets": [
                {"id": "t1", "ticket_number": "TKT-1", "ticket_type_id": "GA", "status": "pending_payment", "final_price": "1000.00"},
                {"id": "t2", "ticket_number": "TKT-2", "ticket_type_id": "GA", "status": "pending_payment", "final_price": "1000.00"},
            ],
        }
        self.order_error: Optional[Exception] = None
        self.push_result = PushResult(accepted=True)
        self.push_error: Optional[Exception] = None
        self.statuses: List[Union[PaymentStatus, Exception]] = []
        self.gate: Optional[asyncio.Event] = None
        self.promos: Dict[str, PromoValidation] = {}
        self.promo_error: Optional[Exception] = None
        self.orders: List[Dict[str, Any]] = []
        self.pushes: List[str] = []
        self.status_calls: List[str] = []
        self.promo_calls: List[str] = []

    async def create_order(self, payload, access_token=None):
        self.orders.append(payload)
        if self.order_error is not None:
            raise self.order_error
        return dict(self.order_response)

    async def initiate_push(self, transaction_id, access_token=None):
        self.pushes.append(transaction_id)
        if self.push_error is not None:
            raise self.push_error
        return self.push_result

    async def get_transaction_status(self, transaction_id, access_token=None):
        self.status_calls.append(transaction_id)
        if self.gate is not None:
            await self.gate.wait()
        item = self.statuses.pop(0) if self.statuses else PaymentStatus.PROCESSING
        if isinstance(item, Exception):
            raise item
        return item

    async def validate_promo_code(self, code, event_id, access_token=None):
        self.promo_calls.append(code)
        if self.promo_error is not None:
            raise self.promo_error
        return self.promos.get(code, PromoValidation.invalid())


@pytest.fixture()
def fake_api(monkeypatch) -> FakeTicketingApi:
    api = FakeTicketingApi()
    monkeypatch.setattr("checkout_service.orders.repository.create_order", api.create_order)
    monkeypatch.setattr("checkout_service.payments.repository.initiate_push", api.initiate_push)
    monkeypatch.setattr("checkout_service.payments.repository.get_transaction_status", api.get_transaction_status)
    monkeypatch.setattr("checkout_service.promo.repository.validate_promo_code", api.validate_promo_code)
    return api


async def _instant_sleep(_seconds: float) -> None:
    # Un tick du minuteur sans attendre réellement
    await asyncio.sleep(0)

async def _blocked_sleep(_seconds: float) -> None:
    # Minuteur qui ne se déclenche jamais (seul le chemin manuel interroge)
    await asyncio.Event().wait()

@pytest.fixture()
def instant_sleep():
    return _instant_sleep

@pytest.fixture()
def blocked_sleep():
    return _blocked_sleep

@pytest.fixture()
def ten_percent() -> PromoValidation:
    return PromoValidation(valid=True, discount_percentage=Decimal("10"))
