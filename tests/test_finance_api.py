import pytest

from models.finance import Bank


def fuel_body(fleet, **overrides):
    body = {
        "app_user_id": fleet.app_user_id,
        "bank_id": fleet.bank_id,
        "vehicle_id": fleet.vehicle_id,
        "start_km": 0,
        "end_km": 600,
        "fuel_quantity": 60,
        "fuel_rate": 90,
        "date": "2024-01-01",
        "payment_type": "upi",
    }
    body.update(overrides)
    return body


def budget_body(fleet, **overrides):
    body = {
        "app_user_id": fleet.app_user_id,
        "bank_id": fleet.bank_id,
        "driver_id": fleet.driver_id,
        "daily_budget_amount": 1000,
        "date": "2024-01-01",
    }
    body.update(overrides)
    return body


def test_fuel_purchase_debits_bank_and_writes_ledger(client, auth_headers, fleet, db_session):
    response = client.post("/api/fuel-tracking/", json=fuel_body(fleet), headers=auth_headers)
    assert response.status_code == 201
    record = response.json()
    assert record["total_amount"] == 5400
    assert record["remaining_fuel_quantity"] == 60
    assert record["truck_average"] == 10

    db_session.expire_all()
    assert db_session.get(Bank, fleet.bank_id).balance == 100000 - 5400

    ledger = client.get(f"/api/transactions/?bank_id={fleet.bank_id}", headers=auth_headers).json()
    assert len(ledger) == 1
    assert ledger[0]["transaction_type"] == "fuel"
    assert ledger[0]["category"] == "Fuel Expense"
    assert ledger[0]["balance_after"] == 94600
    assert ledger[0]["reference"].startswith("TXN-")


def test_second_fuel_purchase_carries_remaining_fuel(client, auth_headers, fleet):
    first = client.post("/api/fuel-tracking/", json=fuel_body(fleet, fuel_quantity=50, end_km=500), headers=auth_headers).json()
    second = client.post(
        "/api/fuel-tracking/",
        json=fuel_body(fleet, start_km=500, end_km=1100, fuel_quantity=10),
        headers=auth_headers,
    ).json()

    assert second["remaining_fuel_quantity"] == 60
    assert second["truck_average"] == 10

    records = client.get(f"/api/fuel-tracking/?vehicle_id={fleet.vehicle_id}", headers=auth_headers).json()
    previous = next(r for r in records if r["id"] == first["id"])
    assert previous["remaining_fuel_quantity"] == 0

    latest = client.get(f"/api/fuel-tracking/latest/{fleet.vehicle_id}", headers=auth_headers).json()
    assert latest["id"] == second["id"]


@pytest.mark.parametrize("overrides, message", [
    ({"end_km": 0}, "End KM must be greater than start KM"),
    ({"fuel_quantity": 0}, "Fuel quantity and rate must be greater than 0"),
])
def test_fuel_purchase_validation(client, auth_headers, fleet, overrides, message):
    response = client.post("/api/fuel-tracking/", json=fuel_body(fleet, **overrides), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == message


def test_fuel_purchase_insufficient_balance(client, auth_headers, fleet):
    response = client.post("/api/fuel-tracking/", json=fuel_body(fleet, fuel_quantity=2000), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance in bank account"


def test_fuel_latest_missing(client, auth_headers, fleet):
    assert client.get(f"/api/fuel-tracking/latest/{fleet.vehicle_id}", headers=auth_headers).status_code == 404


def test_budget_allocation_carries_forward_remainder(client, auth_headers, fleet, db_session):
    first = client.post("/api/driver-budgets/", json=budget_body(fleet), headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["remaining_budget_amount"] == 1000

    second = client.post("/api/driver-budgets/", json=budget_body(fleet, daily_budget_amount=500), headers=auth_headers).json()
    assert second["daily_budget_amount"] == 1500
    assert second["remaining_budget_amount"] == 1500

    latest = client.get(f"/api/driver-budgets/latest/{fleet.driver_id}", headers=auth_headers).json()
    assert latest["id"] == second["id"]
    assert latest["date"] == "2024-01-01"

    # Only new money leaves the bank
    db_session.expire_all()
    assert db_session.get(Bank, fleet.bank_id).balance == 100000 - 1500


def test_budget_requires_positive_amount(client, auth_headers, fleet):
    response = client.post("/api/driver-budgets/", json=budget_body(fleet, daily_budget_amount=0), headers=auth_headers)
    assert response.status_code == 400


def test_budget_unknown_bank(client, auth_headers, fleet):
    response = client.post("/api/driver-budgets/", json=budget_body(fleet, bank_id=999), headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Bank not found"


def test_bank_statement_totals(client, auth_headers, fleet):
    client.post("/api/fuel-tracking/", json=fuel_body(fleet), headers=auth_headers)
    client.post("/api/driver-budgets/", json=budget_body(fleet), headers=auth_headers)

    statement = client.get(f"/api/transactions/statement/{fleet.bank_id}", headers=auth_headers).json()
    assert statement["total_fuel"] == 5400
    assert statement["total_driver_budget"] == 1000
    assert statement["current_balance"] == 100000 - 6400
    assert len(statement["transactions"]) == 2


def cash_body(fleet, **overrides):
    body = {
        "app_user_id": fleet.app_user_id,
        "bank_id": fleet.bank_id,
        "category": "Freight",
        "amount": 5000,
        "date": "2024-02-01",
    }
    body.update(overrides)
    return body


def balance_of(db_session, bank_id):
    db_session.expire_all()
    return db_session.get(Bank, bank_id).balance


def second_bank(db_session, fleet, balance=0.0):
    bank = Bank(bank_name="Union Bank", account_number="5566778899", balance=balance, app_user_id=fleet.app_user_id)
    db_session.add(bank)
    db_session.commit()
    return bank.id


def test_income_credits_bank_and_follows_edits(client, auth_headers, fleet, db_session):
    created = client.post("/api/income/", json=cash_body(fleet), headers=auth_headers)
    assert created.status_code == 201
    income = created.json()
    assert balance_of(db_session, fleet.bank_id) == 105000

    ledger = client.get("/api/transactions/?transaction_type=income", headers=auth_headers).json()
    assert len(ledger) == 1
    assert ledger[0]["to_bank_id"] == fleet.bank_id
    assert ledger[0]["from_bank_id"] is None
    assert ledger[0]["description"] == "Income - Freight"
    assert ledger[0]["balance_after"] == 105000

    updated = client.put(f"/api/income/{income['id']}", json=cash_body(fleet, amount=3000), headers=auth_headers)
    assert updated.status_code == 200
    assert balance_of(db_session, fleet.bank_id) == 103000
    ledger = client.get("/api/transactions/?transaction_type=income", headers=auth_headers).json()
    assert ledger[0]["amount"] == 3000

    deleted = client.delete(f"/api/income/{income['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert balance_of(db_session, fleet.bank_id) == 100000
    assert client.get("/api/transactions/?transaction_type=income", headers=auth_headers).json() == []
    assert client.get(f"/api/income/{income['id']}", headers=auth_headers).status_code == 404


def test_income_cannot_be_reversed_once_spent(client, auth_headers, fleet, db_session):
    income = client.post("/api/income/", json=cash_body(fleet), headers=auth_headers).json()
    bank = db_session.get(Bank, fleet.bank_id)
    bank.balance = 1000
    db_session.commit()

    response = client.delete(f"/api/income/{income['id']}", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient bank balance to reverse this income record"
    assert balance_of(db_session, fleet.bank_id) == 1000


def test_income_requires_positive_amount(client, auth_headers, fleet):
    response = client.post("/api/income/", json=cash_body(fleet, amount=0), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Amount must be greater than 0"


def test_expense_debits_bank_and_delete_refunds(client, auth_headers, fleet, db_session):
    created = client.post("/api/expenses/", json=cash_body(fleet, category="Rent", amount=12000), headers=auth_headers)
    assert created.status_code == 201
    expense = created.json()
    assert balance_of(db_session, fleet.bank_id) == 88000

    ledger = client.get(f"/api/transactions/?bank_id={fleet.bank_id}", headers=auth_headers).json()
    assert ledger[0]["transaction_type"] == "expense"
    assert ledger[0]["from_bank_id"] == fleet.bank_id

    too_much = client.put(f"/api/expenses/{expense['id']}", json=cash_body(fleet, category="Rent", amount=200000), headers=auth_headers)
    assert too_much.status_code == 400
    assert balance_of(db_session, fleet.bank_id) == 88000

    assert client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers).status_code == 200
    assert balance_of(db_session, fleet.bank_id) == 100000


def test_expense_insufficient_balance(client, auth_headers, fleet):
    response = client.post("/api/expenses/", json=cash_body(fleet, amount=150000), headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance in bank account"


def test_expense_moved_to_another_bank(client, auth_headers, fleet, db_session):
    other = second_bank(db_session, fleet, balance=5000)
    expense = client.post("/api/expenses/", json=cash_body(fleet, amount=2000), headers=auth_headers).json()

    moved = client.put(f"/api/expenses/{expense['id']}", json=cash_body(fleet, bank_id=other, amount=2000), headers=auth_headers)
    assert moved.status_code == 200
    assert balance_of(db_session, fleet.bank_id) == 100000
    assert balance_of(db_session, other) == 3000


def test_bank_transfer_moves_money_and_shows_on_both_statements(client, auth_headers, fleet, db_session):
    other = second_bank(db_session, fleet)
    response = client.post(
        "/api/bank-transfers/",
        json={"from_bank_id": fleet.bank_id, "to_bank_id": other, "amount": 2500, "transfer_date": "2024-02-01"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["description"] == "Transfer from State Bank to Union Bank"
    assert balance_of(db_session, fleet.bank_id) == 97500
    assert balance_of(db_session, other) == 2500

    source = client.get(f"/api/transactions/statement/{fleet.bank_id}", headers=auth_headers).json()
    target = client.get(f"/api/transactions/statement/{other}", headers=auth_headers).json()
    assert source["total_transfers_out"] == 2500
    assert source["total_transfers_in"] == 0
    assert target["total_transfers_in"] == 2500
    assert len(target["transactions"]) == 1

    listed = client.get(f"/api/bank-transfers/?bank_id={other}", headers=auth_headers).json()
    assert [t["amount"] for t in listed] == [2500]


@pytest.mark.parametrize("body, code, message", [
    ({"amount": 500, "same": True}, 400, "Cannot transfer to the same bank account"),
    ({"amount": 500000}, 400, "Insufficient balance in source account"),
    ({"amount": 0}, 400, "Amount must be greater than 0"),
    ({"amount": 500, "missing": True}, 404, "One or both bank accounts not found"),
])
def test_bank_transfer_rejections(client, auth_headers, fleet, db_session, body, code, message):
    other = second_bank(db_session, fleet)
    to_bank = fleet.bank_id if body.get("same") else (999 if body.get("missing") else other)
    response = client.post(
        "/api/bank-transfers/",
        json={"from_bank_id": fleet.bank_id, "to_bank_id": to_bank, "amount": body["amount"]},
        headers=auth_headers,
    )
    assert response.status_code == code
    assert response.json()["detail"] == message
    assert balance_of(db_session, fleet.bank_id) == 100000


def test_statement_includes_income_and_expense(client, auth_headers, fleet):
    client.post("/api/income/", json=cash_body(fleet, amount=4000), headers=auth_headers)
    client.post("/api/expenses/", json=cash_body(fleet, amount=1500), headers=auth_headers)

    statement = client.get(f"/api/transactions/statement/{fleet.bank_id}", headers=auth_headers).json()
    assert statement["total_income"] == 4000
    assert statement["total_expense"] == 1500
    assert statement["current_balance"] == 102500


def test_bank_with_income_cannot_be_deleted(client, auth_headers, fleet, db_session):
    other = second_bank(db_session, fleet)
    client.post("/api/income/", json=cash_body(fleet, bank_id=other), headers=auth_headers)
    response = client.delete(f"/api/banks/{other}", headers=auth_headers)
    assert response.status_code == 400


def invoice_body(**overrides):
    body = {
        "date": "2024-02-01",
        "from_location": "Pune",
        "to_location": "Mumbai",
        "customer_name": "Anil Cements",
        "rows": [
            {"product": "Cement", "truck_number": "MH12AB1234", "weight": 10, "rate": 500},
            {"product": "Sand", "truck_number": "MH12AB1234", "total": 750},
        ],
        "tax_percent": 5,
        "advance_amount": 1000,
    }
    body.update(overrides)
    return body


def test_invoice_totals_tax_and_remaining(client, auth_headers):
    response = client.post("/api/invoices/", json=invoice_body(), headers=auth_headers)
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["lr_number"] == "LR20240201001"
    assert invoice["rows"][0]["total"] == 5000
    assert invoice["rows"][1]["total"] == 750
    assert invoice["tax_amount"] == pytest.approx(287.5)
    assert invoice["total"] == pytest.approx(6037.5)
    assert invoice["remaining_amount"] == pytest.approx(5037.5)
    assert invoice["status"] == "unpaid"

    second = client.post("/api/invoices/", json=invoice_body(), headers=auth_headers).json()
    assert second["lr_number"] == "LR20240201002"

    duplicate = client.post("/api/invoices/", json=invoice_body(lr_number="LR20240201001"), headers=auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "LR number already exists"


def test_invoice_update_reprices_rows_with_existing_tax(client, auth_headers):
    invoice = client.post("/api/invoices/", json=invoice_body(), headers=auth_headers).json()
    rows = [{"product": "Cement", "truck_number": "MH12AB1234", "weight": 20, "rate": 500}]
    updated = client.put(f"/api/invoices/{invoice['id']}", json={"rows": rows}, headers=auth_headers).json()

    assert updated["tax_percent"] == 5
    assert updated["total"] == pytest.approx(10500)
    assert updated["remaining_amount"] == pytest.approx(9500)


@pytest.mark.parametrize("overrides", [
    {"rows": []},
    {"customer_name": "   "},
    {"rows": [{"product": "Cement", "truck_number": ""}]},
    {"tax_percent": 120},
])
def test_invoice_rejects_bad_input(client, auth_headers, overrides):
    response = client.post("/api/invoices/", json=invoice_body(**overrides), headers=auth_headers)
    assert response.status_code == 422


def test_marking_invoices_paid_books_income_once(client, auth_headers, fleet, db_session):
    first = client.post("/api/invoices/", json=invoice_body(tax_percent=0), headers=auth_headers).json()
    second = client.post("/api/invoices/", json=invoice_body(tax_percent=0, advance_amount=5750), headers=auth_headers).json()
    body = {
        "invoice_ids": [first["id"], second["id"]],
        "status": "paid",
        "bank_id": fleet.bank_id,
        "app_user_id": fleet.app_user_id,
        "date": "2024-02-10",
    }

    response = client.post("/api/invoices/bulk-status", json=body, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["updated_count"] == 2
    assert {i["status"] for i in response.json()["invoices"]} == {"paid"}
    # Only the first invoice had anything left to collect
    assert balance_of(db_session, fleet.bank_id) == 100000 + 4750

    income = client.get("/api/income/", headers=auth_headers).json()
    assert len(income) == 1
    assert income[0]["category"] == "Invoice Payment"
    assert income[0]["description"] == f"Payment received for invoice {first['lr_number']}"

    client.post("/api/invoices/bulk-status", json=body, headers=auth_headers)
    assert balance_of(db_session, fleet.bank_id) == 100000 + 4750

    unpaid = client.post("/api/invoices/bulk-status", json={"invoice_ids": [first["id"]], "status": "unpaid"}, headers=auth_headers)
    assert unpaid.json()["invoices"][0]["status"] == "unpaid"
    listed = client.get("/api/invoices/?status=paid&customer_name=anil", headers=auth_headers).json()
    assert [i["id"] for i in listed] == [second["id"]]


@pytest.mark.parametrize("body, code", [
    ({"invoice_ids": [1], "status": "paid"}, 400),
    ({"invoice_ids": [1], "status": "pending"}, 400),
    ({"invoice_ids": [404], "status": "unpaid"}, 404),
])
def test_bulk_status_rejections(client, auth_headers, body, code):
    client.post("/api/invoices/", json=invoice_body(), headers=auth_headers)
    response = client.post("/api/invoices/bulk-status", json=body, headers=auth_headers)
    assert response.status_code == code


def test_invoice_delete_is_admin_only(client, auth_headers, operator_headers):
    invoice = client.post("/api/invoices/", json=invoice_body(), headers=auth_headers).json()
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=operator_headers).status_code == 403
    assert client.delete(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 404
