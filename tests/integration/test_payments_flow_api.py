import json

import stripe


def _reserve(client, db, count=1):
    garage = db.add_garage()
    ids = []
    for n in range(count):
        item = db.add_item(garage, name=f"Objet {n}", sale_price=10.0 + n)
        assert client.post(f"/api/v1/items/{item['id']}/reserve").status_code == 200
        ids.append(item["id"])
    return ids

def _post_event(client, sign_webhook, kind, order_id, payment_status="paid"):
    payload = json.dumps({
        "id": "evt_test_1",
        "object": "event",
        "type": kind,
        "data": {"object": {"id": "cs_test_1", "object": "checkout.session",
                            "payment_status": payment_status, "metadata": {"orderId": order_id}}},
    }).encode()
    return client.post("/api/v1/payments/webhook", content=payload, headers=sign_webhook(payload))

def test_checkout_endpoint(client, db, users, stripe_sessions):
    ids = _reserve(client, db, count=2)

    res = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.buyer["id"]})

    assert res.status_code == 200
    body = res.json()
    assert body["session_id"] == "cs_test_1"
    assert body["url"].startswith("https://checkout.example.test/")
    assert db.get("orders", body["order_id"])["total_amount"] == 21.0
    assert stripe_sessions.created[0]["success_url"].endswith("/payment/success?session_id={CHECKOUT_SESSION_ID}")

def test_checkout_identity_mismatch_is_401(client, db, users):
    ids = _reserve(client, db)
    res = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.other["id"]})
    assert res.status_code == 401

def test_checkout_unreserved_item_is_409(client, db, users):
    item = db.add_item(db.add_garage())
    res = client.post("/api/v1/payments/checkout", json={"item_ids": [item["id"]], "customer_id": users.buyer["id"]})
    assert res.status_code == 409

def test_checkout_empty_cart_is_400(client, users):
    res = client.post("/api/v1/payments/checkout", json={"item_ids": [], "customer_id": users.buyer["id"]})
    assert res.status_code == 400

def test_checkout_gateway_down_is_502(client, db, users, stripe_sessions):
    ids = _reserve(client, db)
    stripe_sessions.error = stripe.APIConnectionError("timeout")

    res = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.buyer["id"]})

    assert res.status_code == 502
    [order] = db.rows("orders")
    assert order["status"] == "pending"

def test_webhook_rejects_bad_signature(client):
    res = client.post(
        "/api/v1/payments/webhook",
        content=b'{"type": "checkout.session.completed"}',
        headers={"Stripe-Signature": "t=1,v1=forged", "Content-Type": "application/json"},
    )
    assert res.status_code == 400

def test_webhook_without_secret_is_500(client, gateway, sign_webhook):
    gateway.config.webhook_secret = ""
    payload = b'{"type": "checkout.session.completed"}'
    res = client.post("/api/v1/payments/webhook", content=payload, headers=sign_webhook(payload))
    assert res.status_code == 500

def test_webhook_unknown_order_still_200(client, sign_webhook):
    res = _post_event(client, sign_webhook, "checkout.session.completed", "missing-order")
    assert res.status_code == 200
    assert res.json()["status"] == "ignored"

def test_full_purchase_flow(client, db, users, sign_webhook):
    ids = _reserve(client, db, count=2)
    checkout = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.buyer["id"]}).json()

    res = _post_event(client, sign_webhook, "checkout.session.completed", checkout["order_id"])

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "order_id": checkout["order_id"], "failed_items": []}
    assert client.get(f"/api/v1/orders/{checkout['order_id']}").json()["status"] == "completed"
    assert {client.get(f"/api/v1/items/{i}").json()["status"] for i in ids} == {"sold"}

    # rejeu de l'événement: aucun changement
    assert _post_event(client, sign_webhook, "checkout.session.completed", checkout["order_id"]).status_code == 200
    assert client.get(f"/api/v1/orders/{checkout['order_id']}").json()["status"] == "completed"

def test_failed_payment_returns_items_to_sale(client, db, users, sign_webhook):
    ids = _reserve(client, db)
    checkout = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.buyer["id"]}).json()

    _post_event(client, sign_webhook, "checkout.session.async_payment_failed", checkout["order_id"])

    assert client.get(f"/api/v1/orders/{checkout['order_id']}").json()["status"] == "failed"
    assert client.get(f"/api/v1/items/{ids[0]}").json()["status"] == "available"
    # l'item peut de nouveau être réservé
    assert client.post(f"/api/v1/items/{ids[0]}/reserve").status_code == 200

def test_release_during_payment_is_409(client, db, users, login, sign_webhook):
    ids = _reserve(client, db)
    checkout = client.post("/api/v1/payments/checkout", json={"item_ids": ids, "customer_id": users.buyer["id"]}).json()

    assert client.post(f"/api/v1/items/{ids[0]}/release").status_code == 409
    login(users.seller)
    assert client.post(f"/api/v1/items/{ids[0]}/release").status_code == 409

    res = _post_event(client, sign_webhook, "checkout.session.completed", checkout["order_id"])
    assert res.json()["failed_items"] == []
    assert client.get(f"/api/v1/items/{ids[0]}").json()["status"] == "sold"
