from decimal import Decimal
from unittest.mock import patch

import pytest


def _payments_url(order_id, suffix=""):
    return f"/api/admin/orders/{order_id}/payments{suffix}"


class TestAuth:
    def test_missing_token(self, client, make_order):
        order = make_order("100.00")
        response = client.get(_payments_url(order.id))
        assert response.status_code == 401
        assert response.json() == {"detail": "Missing token"}

    def test_invalid_token(self, client, make_order):
        order = make_order("100.00")
        response = client.get(_payments_url(order.id), headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403


class TestGetPayments:
    def test_empty_ledger(self, client, auth_headers, make_order):
        order = make_order("1000.00", number_of_installments=4)

        response = client.get(_payments_url(order.id), headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["payment_history"] == []
        assert Decimal(body["total_paid"]) == Decimal("0")
        assert Decimal(body["total_amount"]) == Decimal("1000.00")
        assert body["installment_amount"] is None
        assert body["number_of_installments"] == 4
        assert body["payment_status"] == "pending"

    def test_order_not_found(self, client, auth_headers):
        response = client.get(_payments_url(999), headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Order not found", "details": "Order with ID 999 not found"}

    def test_non_positive_order_id(self, client, auth_headers):
        response = client.get(_payments_url(0), headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"
        assert "order_id" in response.json()["details"]


class TestRecordPayment:
    @patch("routers.payments.notify_payment_recorded")
    def test_full_lifecycle(self, mock_notify, client, auth_headers, make_order):
        order = make_order("1000.00")

        first = client.post(_payments_url(order.id), headers=auth_headers,
                            json={"amount": 250.00, "paymentMethod": "cash"})
        assert first.status_code == 201
        body = first.json()
        assert body["success"] is True
        assert body["payment"]["id"] == 1
        assert body["payment"]["payment_type"] == "initial"
        assert Decimal(body["total_paid"]) == Decimal("250.00")
        assert body["payment_status"] == "partial"
        assert Decimal(body["remaining_balance"]) == Decimal("750.00")

        second = client.post(_payments_url(order.id), headers=auth_headers,
                             json={"amount": "750.00", "paymentMethod": "check", "paymentType": "full"})
        assert second.status_code == 201
        body = second.json()
        assert body["payment"]["id"] == 2
        assert body["payment"]["payment_type"] == "installment"
        assert body["payment_status"] == "completed"
        assert Decimal(body["remaining_balance"]) == Decimal("0")

        third = client.post(_payments_url(order.id), headers=auth_headers,
                            json={"amount": "0.01", "paymentMethod": "cash"})
        assert third.status_code == 400
        assert third.json() == {
            "error": "Payment amount exceeds remaining balance",
            "details": "Maximum payment allowed is $0.00",
        }

        ledger = client.get(_payments_url(order.id), headers=auth_headers).json()
        assert Decimal(ledger["total_paid"]) == Decimal("1000.00")
        assert [p["id"] for p in ledger["payment_history"]] == [1, 2]
        assert mock_notify.call_count == 2
        event = mock_notify.call_args_list[1].args[0]
        assert event.payment_status.value == "completed"
        assert event.previous_status.value == "partial"

    @pytest.mark.parametrize("payload, error", [
        ({"paymentMethod": "cash"}, "Missing required fields"),
        ({"amount": "10.00"}, "Missing required fields"),
        ({"amount": "10.00", "paymentMethod": "wire"}, "Missing required fields"),
        ({"amount": "ten", "paymentMethod": "cash"}, "Invalid payment amount"),
        ({"amount": -5, "paymentMethod": "cash"}, "Invalid payment amount"),
        ({"amount": "10.00", "paymentMethod": "zelle", "confirmation": {}}, "Missing payment confirmation"),
        ({"amount": "10.00", "paymentMethod": "paypal"}, "Missing payment confirmation"),
    ])
    def test_rejected_submissions(self, client, auth_headers, make_order, payload, error):
        order = make_order("500.00")

        response = client.post(_payments_url(order.id), headers=auth_headers, json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == error
        ledger = client.get(_payments_url(order.id), headers=auth_headers).json()
        assert ledger["payment_history"] == []

    def test_overpayment_message(self, client, auth_headers, make_order):
        order = make_order("500.00")

        response = client.post(_payments_url(order.id), headers=auth_headers,
                               json={"amount": "600.00", "paymentMethod": "cash"})

        assert response.status_code == 400
        assert response.json()["details"] == "Maximum payment allowed is $500.00"

    def test_unknown_order(self, client, auth_headers):
        response = client.post(_payments_url(321), headers=auth_headers,
                               json={"amount": "10.00", "paymentMethod": "cash"})
        assert response.status_code == 404
        assert response.json()["error"] == "Order not found"

    @patch("routers.payments.notify_payment_recorded")
    def test_camel_case_confirmation_and_sticky_installment(self, mock_notify, client, auth_headers, make_order):
        order = make_order("900.00", number_of_installments=3)

        first = client.post(_payments_url(order.id), headers=auth_headers, json={
            "amount": "300.00",
            "paymentMethod": "paypal",
            "confirmation": {"paypalTransactionId": "PP-5521"},
            "installmentAmount": "300.00",
            "notes": "first of three",
        }).json()
        second = client.post(_payments_url(order.id), headers=auth_headers, json={
            "amount": "300.00",
            "payment_method": "zelle",
            "confirmation": {"zelle_confirmation": "ZL-0042"},
            "installment_amount": "450.00",
        }).json()

        assert first["payment"]["confirmation_details"] == {"paypal_transaction_id": "PP-5521"}
        assert first["payment"]["notes"] == "first of three"
        assert Decimal(first["installment_amount"]) == Decimal("300.00")
        assert Decimal(second["installment_amount"]) == Decimal("300.00")
        assert Decimal(second["payment"]["installment_amount"]) == Decimal("300.00")
        assert second["number_of_installments"] == 3


class TestRawRequestValues:
    @pytest.mark.parametrize("payload, error, field", [
        ({"amount": True, "paymentMethod": "cash"}, "Invalid payment amount", "amount"),
        ({"amount": [10], "paymentMethod": "cash"}, "Invalid payment amount", "amount"),
        ({"amount": {"value": 10}, "paymentMethod": "cash"}, "Invalid payment amount", "amount"),
        ({"amount": "10.00", "paymentMethod": 5}, "Missing required fields", "paymentMethod"),
        ({"amount": "10.00", "paymentMethod": "cash", "installmentAmount": True},
         "Invalid payment amount", "installmentAmount"),
    ])
    def test_uncoerced_values_are_rejected_by_the_ledger(self, client, auth_headers, make_order,
                                                         payload, error, field):
        order = make_order("500.00")

        response = client.post(_payments_url(order.id), headers=auth_headers, json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == error
        assert field in body["details"]
        ledger = client.get(_payments_url(order.id), headers=auth_headers).json()
        assert ledger["payment_history"] == []
        assert Decimal(ledger["total_paid"]) == Decimal("0")

    @patch("routers.payments.notify_payment_recorded")
    def test_numeric_confirmation_code_is_accepted(self, mock_notify, client, auth_headers, make_order):
        order = make_order("500.00")

        response = client.post(_payments_url(order.id), headers=auth_headers, json={
            "amount": "100.00",
            "paymentMethod": "zelle",
            "confirmation": {"zelle_confirmation": 884512},
        })

        assert response.status_code == 201
        assert response.json()["payment"]["confirmation_details"] == {"zelle_confirmation": "884512"}

    @pytest.mark.parametrize("payload", [
        {"amount": "10.00", "paymentMethod": "cash", "paymentType": "weekly"},
        {"amount": "10.00", "paymentMethod": "zelle", "confirmation": "ZL-1"},
    ])
    def test_malformed_shape_uses_error_body(self, client, auth_headers, make_order, payload):
        order = make_order("500.00")

        response = client.post(_payments_url(order.id), headers=auth_headers, json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Invalid request"
        assert body["details"]
        assert client.get(_payments_url(order.id), headers=auth_headers).json()["payment_history"] == []

    def test_known_payment_type_hint_is_accepted(self, client, auth_headers, make_order):
        order = make_order("500.00")

        with patch("routers.payments.notify_payment_recorded"):
            response = client.post(_payments_url(order.id), headers=auth_headers,
                                   json={"amount": "500.00", "paymentMethod": "cash", "payment_type": "full"})

        assert response.status_code == 201
        assert response.json()["payment"]["payment_type"] == "initial"


class TestSuggestion:
    def test_installment_and_full_suggestions(self, client, auth_headers, make_order):
        order = make_order("1000.00")

        before = client.get(_payments_url(order.id, "/suggestion"), headers=auth_headers,
                            params={"payment_type": "installment", "total_due_after_first": "2500"}).json()
        assert Decimal(before["suggested_amount"]) == Decimal("333.33")

        client.post(_payments_url(order.id), headers=auth_headers,
                    json={"amount": "200.00", "paymentMethod": "cash", "installmentAmount": "200.00"})

        installment = client.get(_payments_url(order.id, "/suggestion"), headers=auth_headers).json()
        full = client.get(_payments_url(order.id, "/suggestion"), headers=auth_headers,
                          params={"payment_type": "full"}).json()

        assert Decimal(installment["suggested_amount"]) == Decimal("200.00")
        assert installment["payment_type"] == "installment"
        assert Decimal(full["suggested_amount"]) == Decimal("800.00")
        assert Decimal(full["remaining_balance"]) == Decimal("800.00")

    def test_unknown_payment_type(self, client, auth_headers, make_order):
        order = make_order("100.00")
        response = client.get(_payments_url(order.id, "/suggestion"), headers=auth_headers,
                              params={"payment_type": "weekly"})
        assert response.status_code == 422


class TestVerify:
    def test_verify_after_payments(self, client, auth_headers, make_order):
        order = make_order("100.00")
        client.post(_payments_url(order.id), headers=auth_headers, json={"amount": "60", "paymentMethod": "cash"})

        response = client.get(_payments_url(order.id, "/verify"), headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "order_id": order.id,
            "verified": True,
            "message": "Ledger verification passed",
            "entries_checked": 1,
        }


def test_unknown_route(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": True}
