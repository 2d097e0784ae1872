"""Integration tests for the transaction listing endpoint."""

from datetime import date
from decimal import Decimal

from tests.fixtures import OTHER_USER_ID, add_transaction


def _seed(db, account, credit_account):
    add_transaction(db, account, "t_nov", txn_date=date(2025, 11, 28), description="Grocer")
    add_transaction(
        db, account, "t_dec", amount="650.00", txn_date=date(2025, 12, 3),
        description="AIR FRANCE 057", category="TRAVEL",
    )
    add_transaction(
        db, credit_account, "t_card", txn_date=date(2025, 12, 5), currency_code="EUR",
        description="Cafe", merchant_name="Café de Flore", category="FOOD_AND_DRINK",
    )
    add_transaction(db, account, "t_other", user_id=OTHER_USER_ID)
    db.commit()


def test_lists_owned_transactions_newest_first(client, db, account, credit_account):
    _seed(db, account, credit_account)

    response = client.get("/api/transactions")

    assert response.status_code == 200
    data = response.json()
    assert [t["id"] for t in data] == ["t_card", "t_dec", "t_nov"]
    card = data[0]
    assert card["account_name"] == "Plaid Credit Card"
    assert card["institution_name"] == "First Platypus Bank"
    assert card["currency_code"] == "EUR"
    assert Decimal(data[1]["amount"]) == Decimal("650.00")


def test_filters(client, db, account, credit_account):
    _seed(db, account, credit_account)

    by_range = client.get(
        "/api/transactions", params={"start_date": "2025-12-01", "end_date": "2025-12-04"}
    ).json()
    by_account = client.get("/api/transactions", params={"account_id": "acc_credit"}).json()
    by_search = client.get("/api/transactions", params={"search": "air france"}).json()
    by_category = client.get("/api/transactions", params={"category": "travel"}).json()
    limited = client.get("/api/transactions", params={"limit": 1}).json()

    assert [t["id"] for t in by_range] == ["t_dec"]
    assert [t["id"] for t in by_account] == ["t_card"]
    assert [t["id"] for t in by_search] == ["t_dec"]
    assert [t["id"] for t in by_category] == ["t_dec"]
    assert [t["id"] for t in limited] == ["t_card"]


def test_inverted_range_is_400(client):
    response = client.get(
        "/api/transactions", params={"start_date": "2025-12-05", "end_date": "2025-12-01"}
    )
    assert response.status_code == 400


def test_empty(client):
    assert client.get("/api/transactions").json() == []
