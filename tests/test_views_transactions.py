from datetime import date
from decimal import Decimal

import pytest

from budget.models import MonthlySummary, Transaction, TransactionType

pytestmark = pytest.mark.django_db


def _march(user):
    return MonthlySummary.objects.get(user=user, month_year=date(2024, 3, 1))


def test_create_transaction_updates_summary(api_client, send_json, user, make_category):
    category = make_category("Salary", TransactionType.INCOME)
    response = send_json(api_client, "post", "/api/transactions/", {
        "description": "March salary",
        "amount": "2.500,00",
        "type": "income",
        "date": "2024-03-05",
        "categoryId": category.pk,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == "2500.00"
    assert body["date"] == "2024-03-05"
    assert body["categoryId"] == category.pk

    summary = _march(user)
    assert summary.total_income == Decimal("2500.00")
    assert summary.final_balance == Decimal("2500.00")


@pytest.mark.parametrize("payload, field", [
    ({"description": "", "amount": 1, "type": "NEEDS", "date": "2024-03-05"}, "description"),
    ({"description": "x", "amount": -1, "type": "NEEDS", "date": "2024-03-05"}, "amount"),
    ({"description": "x", "amount": 1, "type": "FOOD", "date": "2024-03-05"}, "type"),
    ({"description": "x", "amount": 1, "type": "NEEDS", "date": "someday"}, "date"),
    ({"description": "x", "amount": 1, "type": "NEEDS"}, "date"),
])
def test_create_transaction_validation(api_client, send_json, payload, field):
    response = send_json(api_client, "post", "/api/transactions/", payload)
    assert response.status_code == 400
    assert field in response.json()["errors"]
    assert not Transaction.objects.exists()


def test_create_transaction_rejects_foreign_or_mismatched_category(
    api_client, send_json, make_category, other_user
):
    foreign = make_category("Theirs", TransactionType.NEEDS, owner=other_user)
    income = make_category("Salary", TransactionType.INCOME)
    base = {"description": "x", "amount": 1, "type": "NEEDS", "date": "2024-03-05"}

    response = send_json(api_client, "post", "/api/transactions/", {**base, "category_id": foreign.pk})
    assert response.json()["errors"]["category_id"] == ["Category not found or access denied"]

    response = send_json(api_client, "post", "/api/transactions/", {**base, "category_id": income.pk})
    assert response.status_code == 400
    assert "does not match" in response.json()["message"]


def test_list_transactions_by_month(api_client, make_transaction, other_user):
    make_transaction("1.00", on=date(2024, 3, 1), description="early")
    make_transaction("2.00", on=date(2024, 3, 31), description="late")
    make_transaction("3.00", on=date(2024, 4, 1), description="april")
    make_transaction("4.00", on=date(2024, 3, 15), owner=other_user)

    response = api_client.get("/api/transactions/?month=2024-03")
    assert [t["description"] for t in response.json()] == ["late", "early"]

    assert len(api_client.get("/api/transactions/").json()) == 3
    assert api_client.get("/api/transactions/?month=2024-3").status_code == 400


def test_update_transaction_moves_summary(api_client, send_json, user):
    created = send_json(api_client, "post", "/api/transactions/", {
        "description": "Rent", "amount": 900, "type": "NEEDS", "date": "2024-03-01",
    }).json()

    response = send_json(api_client, "put", f"/api/transactions/{created['id']}/", {
        "description": "Rent", "amount": 950, "type": "NEEDS", "date": "2024-04-01",
    })
    assert response.status_code == 200

    assert _march(user).needs_expenses == Decimal("0.00")
    april = MonthlySummary.objects.get(user=user, month_year=date(2024, 4, 1))
    assert april.needs_expenses == Decimal("950.00")
    assert april.final_balance == Decimal("-950.00")


def test_delete_transaction_updates_summary(api_client, send_json, user):
    created = send_json(api_client, "post", "/api/transactions/", {
        "description": "Bonus", "amount": 300, "type": "INCOME", "date": "2024-03-10",
    }).json()
    response = api_client.delete(f"/api/transactions/{created['id']}/")
    assert response.status_code == 200
    assert not Transaction.objects.exists()
    assert _march(user).total_income == Decimal("0.00")


def test_transaction_of_other_user_is_not_found(api_client, send_json, make_transaction, other_user):
    tx = make_transaction("10.00", owner=other_user)
    assert api_client.get(f"/api/transactions/{tx.pk}/").status_code == 404
    assert api_client.delete(f"/api/transactions/{tx.pk}/").status_code == 404
    response = send_json(api_client, "put", f"/api/transactions/{tx.pk}/", {
        "description": "x", "amount": 1, "type": "NEEDS", "date": "2024-03-05",
    })
    assert response.status_code == 404
    assert Transaction.objects.filter(pk=tx.pk).exists()


def test_transactions_require_login(anon_client):
    assert anon_client.get("/api/transactions/").status_code == 401
