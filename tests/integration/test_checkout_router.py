from fastapi.testclient import TestClient

from checkout_service.errors import OrderRejectedError
from checkout_service.payments import PaymentStatus, PushResult
from checkout_service.payments.models import MSG_STILL_PROCESSING

BASE = "/api/v1/checkout"
ATTENDEE = {"name": "Wanjiku Kamau", "email": "wanjiku@example.com", "phone": "254712345678"}


def _start(client, **overrides):
    payload = {
        "event": {"id": "evt-1", "title": "Concert Nairobi", "slug": "concert-nairobi"},
        "ticket_types": [
            {"id": "GA", "name": "General Admission", "price": "1000.00"},
            {"id": "VIP", "name": "VIP", "price": 2500},
        ],
        "selected_tickets": {"GA": 2, "VIP": 0},
        "attendee": ATTENDEE,
    }
    payload.update(overrides)
    return client.post(BASE, json=payload)


def test_start_returns_summary(client, fake_api):
    res = _start(client, attendee=None)
    assert res.status_code == 200
    data = res.json()
    assert data["step"] == "details"
    assert data["session"]["cart"] == {"GA": 2}
    assert data["session"]["quote"]["subtotal"] == "2000.00"
    assert data["session"]["quote"]["total"] == "2000.00"
    assert data["session"]["currency"] == "KES"
    assert data["can_submit"] is False


def test_no_checkout_in_session(client):
    res = client.get(BASE)
    assert res.status_code == 404
    assert res.json()["code"] == "SESSION_NOT_FOUND"


def test_full_purchase(client, fake_api):
    assert _start(client).json()["can_submit"] is True

    res = client.post(f"{BASE}/submit")
    assert res.status_code == 200
    data = res.json()
    assert data["step"] == "payment"
    assert data["transaction"]["transaction_id"] == "tx-1"
    assert data["transaction"]["amount_due"] == "2000.00"
    assert data["payment"]["status"] == "processing"
    assert fake_api.orders[0]["items"] == [{"ticket_type_id": "GA", "quantity": 2}]
    assert fake_api.pushes == ["tx-1"]

    res = client.post(f"{BASE}/confirm")
    assert res.json()["payment"]["message"] == MSG_STILL_PROCESSING

    fake_api.statuses = [PaymentStatus.COMPLETED]
    data = client.post(f"{BASE}/confirm").json()
    assert data["step"] == "confirmation"
    assert data["attendee_email"] == "wanjiku@example.com"
    assert data["session"] is None
    assert client.get(BASE).json()["step"] == "confirmation"

    # Le panier n'existe plus: une nouvelle soumission est refusée
    res = client.post(f"{BASE}/submit")
    assert res.status_code == 404


def test_leave_checkout(client, fake_api):
    _start(client)
    client.post(f"{BASE}/submit")
    res = client.delete(BASE)
    assert res.json() == {"ok": True, "discarded": True}
    assert client.get(BASE).status_code == 404
    assert client.get("/health").json()["active_checkouts"] == 0


def test_referral_code_is_locked(client, fake_api, ten_percent):
    fake_api.promos["PARTNER"] = ten_percent
    data = _start(client, promo_code=" partner ", promo_source="url").json()
    assert data["session"]["promo"]["code"] == "PARTNER"
    assert data["session"]["promo"]["status"] == "valid"
    assert data["session"]["quote"]["discount_amount"] == "200.00"
    assert data["session"]["quote"]["total"] == "1800.00"

    res = client.put(f"{BASE}/promo", json={"code": "OTHER"})
    assert res.status_code == 409
    assert res.json()["code"] == "PROMO_LOCKED"


def test_manual_code_unknown(client, fake_api):
    _start(client)
    data = client.put(f"{BASE}/promo", json={"code": "nope"}).json()
    assert data["session"]["promo"]["status"] == "invalid"
    assert data["session"]["quote"]["total"] == "2000.00"
    client.post(f"{BASE}/submit")
    assert "promoter_code" not in fake_api.orders[0]


def test_missing_attendee_fields(client, fake_api):
    _start(client, attendee={"name": "Ana"})
    data = client.post(f"{BASE}/submit").json()
    assert data["step"] == "details"
    assert "Champs obligatoires manquants" in data["error"]
    assert fake_api.orders == []

    data = client.put(f"{BASE}/attendee", json=ATTENDEE).json()
    assert data["error"] is None
    assert data["can_submit"] is True


def test_order_rejected(client, fake_api):
    fake_api.order_error = OrderRejectedError("Plus que 1 billet disponible")
    _start(client)
    data = client.post(f"{BASE}/submit").json()
    assert data["step"] == "details"
    assert data["error"] == "Plus que 1 billet disponible"
    assert fake_api.pushes == []


def test_push_refused_then_restart(client, fake_api):
    fake_api.push_result = PushResult(accepted=False, message="Numéro M-Pesa invalide")
    _start(client)
    data = client.post(f"{BASE}/submit").json()
    assert data["step"] == "payment"
    assert data["payment"]["status"] == "failed"
    assert data["payment"]["message"] == "Numéro M-Pesa invalide"
    assert data["can_restart"] is True

    data = client.post(f"{BASE}/restart").json()
    assert data["step"] == "details"
    assert data["session"]["cart"] == {"GA": 2}


def test_restart_refused_while_processing(client, fake_api):
    _start(client)
    client.post(f"{BASE}/submit")
    res = client.post(f"{BASE}/restart")
    assert res.status_code == 409
    assert res.json()["code"] == "INVALID_TRANSITION"


def test_adjust_cart(client, fake_api):
    _start(client)
    data = client.post(f"{BASE}/cart/adjust", json={"ticket_type_id": "VIP", "delta": 1}).json()
    assert data["session"]["cart"] == {"GA": 2, "VIP": 1}
    assert data["session"]["quote"]["total"] == "4500.00"

    res = client.post(f"{BASE}/cart/adjust", json={"ticket_type_id": "NOPE", "delta": 1})
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION"


def test_new_checkout_replaces_previous(client, fake_api):
    _start(client)
    _start(client, selected_tickets={"VIP": 1})
    assert client.get("/health").json() == {"ok": True, "active_checkouts": 1}
    assert client.get(BASE).json()["session"]["cart"] == {"VIP": 1}


def test_bad_ticket_price_is_rejected(client, fake_api):
    for price in ["NaN", "-5", "Infinity"]:
        res = _start(client, ticket_types=[{"id": "GA", "name": "GA", "price": price}])
        assert res.status_code == 422
    assert client.get("/health").json()["active_checkouts"] == 0


def test_oversized_quantity_is_clamped(client, fake_api):
    data = _start(client, selected_tickets={"GA": 100000}).json()
    assert data["session"]["cart"] == {"GA": 10}
    assert data["session"]["quote"]["total"] == "10000.00"


def test_confirmed_checkout_is_not_active(client, fake_api):
    _start(client)
    client.post(f"{BASE}/submit")
    fake_api.statuses = [PaymentStatus.COMPLETED]
    assert client.post(f"{BASE}/confirm").json()["step"] == "confirmation"
    assert client.get("/health").json()["active_checkouts"] == 0
    assert client.get(BASE).json()["step"] == "confirmation"

    # Un second "j'ai payé" relit simplement la confirmation
    res = client.post(f"{BASE}/confirm")
    assert res.status_code == 200
    assert res.json()["step"] == "confirmation"


def test_referral_code_is_checked_once(client, fake_api, ten_percent):
    fake_api.promos["PARTNER"] = ten_percent
    _start(client, promo_code="partner", promo_source="url")
    assert fake_api.promo_calls == ["PARTNER"]


def test_blank_code_makes_no_call(client, fake_api):
    data = _start(client, promo_code="   ").json()
    assert data["session"]["promo"] is None
    assert fake_api.promo_calls == []


def test_shutdown_stops_every_timer(app, fake_api):
    with TestClient(app) as c:
        _start(c)
        assert c.post(f"{BASE}/submit").json()["payment"]["status"] == "processing"
        pollers = [flow.poller for flow in app.state.checkouts.flows()]
        assert pollers and all(p.running for p in pollers)
    assert all(p.running is False for p in pollers)
    assert len(app.state.checkouts) == 0
