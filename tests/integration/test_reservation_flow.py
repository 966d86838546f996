import json
import re

CODE_PATTERN = re.compile(r"^RES-[A-Z0-9]{8}$")
GUEST_PHONE = "+34600000002"


def _payload(table, owner, amount, guests=(GUEST_PHONE,)):
    return {
        "tableId": table.id,
        "eventId": table.event_id,
        "ownerUserId": owner.id,
        "guestPhoneNumbers": list(guests),
        "paymentAmount": amount,
        "stripePaymentIntentId": "order_abc",
        "contactName": "Olivia Owner",
        "contactEmail": "owner@example.com",
        "contactPhone": "+34600000001",
    }


def test_reservation_with_payment_flow(client, table, owner, guest):
    response = client.post("/reservations/with-payment", json=_payload(table, owner, 100))

    assert response.status_code == 201
    body = response.json()
    assert body["numPeople"] == 2
    assert body["totalAmount"] == "100.00 €"
    assert body["amountPaid"] == "100.00 €"
    assert body["amountRemaining"] == "0.00 €"
    assert body["paymentStatus"] == "completed"
    assert body["guestUserIds"] == [guest.id]
    assert CODE_PATTERN.match(body["reservationCode"])

    tickets = client.get(f"/reservations/{body['id']}/tickets").json()
    assert len(tickets) == 2
    assert all(ticket["price"] == "50.00 €" for ticket in tickets)
    assert {ticket["userId"] for ticket in tickets} == {owner.id, guest.id}

    payment = client.get(f"/payments/{body['paymentId']}").json()
    assert payment["gatewayTransactionId"] == "order_abc"
    assert payment["amount"] == "100.00 €"


def test_amount_mismatch_is_rejected_without_side_effects(client, table, owner, guest):
    response = client.post("/reservations/with-payment", json=_payload(table, owner, 99))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "AMOUNT_MISMATCH"
    assert client.get("/reservations").json() == {"reservations": []}


def test_unknown_guest_phone(client, table, owner):
    response = client.post(
        "/reservations/with-payment",
        json=_payload(table, owner, 100, guests=("+34999999999",)),
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "GUEST_NOT_FOUND"


def test_unknown_table_is_not_found(client, table, owner):
    payload = _payload(table, owner, 50, guests=())
    payload["tableId"] = "11111111-1111-1111-1111-111111111111"

    response = client.post("/reservations/with-payment", json=payload)

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "TABLE_NOT_FOUND"


def test_missing_fields_are_bad_requests(client):
    response = client.post("/reservations/with-payment", json={"tableId": "x"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_ARGUMENT"


def test_reservation_lookup_by_code(client, table, owner, guest, event):
    created = client.post("/reservations/with-payment", json=_payload(table, owner, 100)).json()

    response = client.get(f"/reservations/code/{created['reservationCode']}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["table"]["name"] == "VIP 1"
    assert body["event"]["title"] == event.title

    assert client.get("/reservations/code/RES-ZZZZZZZZ").status_code == 404


def test_user_reservations_and_direct_edit(client, table, owner):
    created = client.post(
        f"/users/{owner.id}/reservations",
        json={
            "tableId": table.id,
            "eventId": table.event_id,
            "numPeople": 2,
            "contactName": "Olivia Owner",
            "contactEmail": "owner@example.com",
            "contactPhone": "+34600000001",
        },
    )
    assert created.status_code == 201
    reservation = created.json()
    assert reservation["amountPaid"] == "0.00 €"
    assert reservation["amountRemaining"] == "100.00 €"

    updated = client.put(
        f"/reservations/{reservation['id']}",
        json={"numPeople": 3, "specialRequests": "Birthday"},
    )
    assert updated.status_code == 200
    assert updated.json()["totalAmount"] == "150.00 €"
    assert updated.json()["contactName"] == "Olivia Owner"

    listed = client.get(f"/users/{owner.id}/reservations").json()["reservations"]
    assert [item["id"] for item in listed] == [reservation["id"]]

    by_table = client.get(f"/tables/{table.id}/reservations").json()["reservations"]
    assert [item["id"] for item in by_table] == [reservation["id"]]

    assert client.delete(f"/reservations/{reservation['id']}").status_code == 204
    assert client.get(f"/reservations/{reservation['id']}").status_code == 404


def test_table_crud(client, event):
    created = client.post(
        "/tables",
        json={"eventId": event.id, "name": "Booth 3", "capacity": 6, "minSpend": 40},
    )
    assert created.status_code == 201
    table = created.json()
    assert table["totalCost"] == "240.00 €"

    updated = client.put(f"/tables/{table['id']}", json={"minSpend": 45.5})
    assert updated.json()["totalCost"] == "273.00 €"
    assert updated.json()["name"] == "Booth 3"

    client.put(f"/tables/{table['id']}", json={"available": False})
    available = client.get(f"/events/{event.id}/tables", params={"available": True}).json()
    assert available == {"tables": []}

    assert client.delete(f"/tables/{table['id']}").status_code == 204
    assert client.get(f"/tables/{table['id']}").status_code == 404


def test_payment_intent(client, gateway, table, owner, guest):
    response = client.post(
        "/reservations/payment-intent",
        json={
            "tableId": table.id,
            "eventId": table.event_id,
            "ownerUserId": owner.id,
            "guestPhoneNumbers": [GUEST_PHONE],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["intentId"] == "order_test_1"
    assert body["clientSecret"] == "rzp_test_key"
    assert body["amountMinorUnits"] == 10000
    assert body["amount"] == "100.00 €"


def test_webhook_completes_pending_payment(client, store, owner):
    payment = store.create_payment(
        sender_id=owner.id,
        receiver_id=owner.id,
        amount=50,
        participant_ids=[owner.id],
        gateway_transaction_id="order_hook",
    )
    body = json.dumps(
        {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_9", "order_id": "order_hook"}}},
        }
    )

    rejected = client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Razorpay-Signature": "forged", "x-razorpay-event-id": "evt_1"},
    )
    assert rejected.status_code == 400

    accepted = client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Razorpay-Signature": "valid-signature", "x-razorpay-event-id": "evt_1"},
    )
    assert accepted.status_code == 200
    assert accepted.json() == {
        "status": "processed",
        "paymentId": payment.id,
        "paymentStatus": "completed",
    }

    replay = client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Razorpay-Signature": "valid-signature", "x-razorpay-event-id": "evt_1"},
    )
    assert replay.json()["status"] == "ignored"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_malformed_ids_are_bad_requests(client, table):
    responses = [
        client.get("/reservations/not-a-uuid"),
        client.delete("/reservations/not-a-uuid"),
        client.get("/tables/xyz"),
        client.put("/tables/xyz", json={"name": "Terrace"}),
        client.get("/tables/xyz/reservations"),
        client.get("/events/xyz/tables"),
        client.get("/users/xyz/reservations"),
        client.get("/payments/xyz"),
        client.get("/tickets/xyz"),
        client.delete(f"/reservations/{table.id}/tickets/xyz"),
    ]

    for response in responses:
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_ARGUMENT"

    assert client.get("/tables/11111111-1111-1111-1111-111111111111").status_code == 404


def test_plain_reservation_rejects_table_from_another_event(client, table, owner):
    response = client.post(
        f"/users/{owner.id}/reservations",
        json={
            "tableId": table.id,
            "eventId": "22222222-2222-2222-2222-222222222222",
            "numPeople": 2,
            "contactName": "Olivia Owner",
            "contactEmail": "owner@example.com",
            "contactPhone": "+34600000001",
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_ARGUMENT"


def test_repeated_guest_is_rejected(client, table, owner, guest):
    response = client.post(
        "/reservations/with-payment",
        json=_payload(table, owner, 150, guests=(GUEST_PHONE, GUEST_PHONE)),
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_ARGUMENT"
    assert client.get("/reservations").json() == {"reservations": []}


def test_ticket_lookup_by_id(client, table, owner, guest):
    created = client.post("/reservations/with-payment", json=_payload(table, owner, 100)).json()
    tickets = client.get(f"/reservations/{created['id']}/tickets").json()

    response = client.get(f"/tickets/{tickets[0]['id']}")

    assert response.status_code == 200
    assert response.json()["ticketCode"] == tickets[0]["ticketCode"]
    assert client.get("/tickets/11111111-1111-1111-1111-111111111111").status_code == 404
