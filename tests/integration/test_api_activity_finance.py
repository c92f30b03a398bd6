"""Tests for the activity feed and finance API endpoints."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient


def create_account(client, headers, **overrides):
    payload = {"name": "Girokonto", "account_type": "checking", "current_balance": 1000}
    payload.update(overrides)
    response = client.post("/v1/finance/accounts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def add_transaction(client, headers, account_id, transaction_type, amount, **extra):
    payload = {
        "account_id": account_id,
        "transaction_type": transaction_type,
        "amount": amount,
        "occurred_at": datetime.now(timezone.utc).date().isoformat(),
    }
    payload.update(extra)
    return client.post("/v1/finance/transactions", json=payload, headers=headers)


def balance(client, headers, account_id):
    return client.get(f"/v1/finance/accounts/{account_id}", headers=headers).json()["current_balance"]


@pytest.mark.integration
class TestActivityAPI:
    """Test the activity feed and its aggregations."""

    def test_manual_entry_and_filters(self, client: TestClient, auth_headers):
        created = client.post(
            "/v1/activity",
            json={"title": "Spaziergang", "faction_id": "koerper", "xp_amount": 15},
            headers=auth_headers,
        )
        client.post("/v1/geist/mood", json={"mood": "good"}, headers=auth_headers)

        assert created.status_code == 201
        assert created.json()["activity_type"] == "manual"

        everything = client.get("/v1/activity", headers=auth_headers).json()
        koerper = client.get("/v1/activity", params={"faction_id": "koerper"}, headers=auth_headers).json()
        today = client.get("/v1/activity/today", headers=auth_headers).json()

        assert [a["title"] for a in everything][1] == "Spaziergang"
        assert [a["title"] for a in koerper] == ["Spaziergang"]
        assert len(today) == 2

    def test_unknown_faction_filter(self, client: TestClient, auth_headers):
        response = client.get("/v1/activity", params={"faction_id": "mond"}, headers=auth_headers)

        assert response.status_code == 400

    def test_summary_counts_positive_xp(self, client: TestClient, auth_headers):
        client.post(
            "/v1/activity", json={"title": "Lesen", "faction_id": "wissen", "xp_amount": 15}, headers=auth_headers
        )
        client.post("/v1/geist/mood", json={"mood": "good"}, headers=auth_headers)

        summary = client.get("/v1/activity/summary", params={"days": 7}, headers=auth_headers).json()

        assert summary["total_activities"] == 2
        assert summary["total_xp_gained"] == 17
        assert summary["by_type"] == {"manual": 1, "mood_logged": 1}
        assert summary["by_faction"] == {"wissen": 1, "geist": 1}

    def test_daily_is_zero_filled_oldest_first(self, client: TestClient, auth_headers):
        client.post("/v1/activity", json={"title": "Heute", "xp_amount": 4}, headers=auth_headers)

        points = client.get("/v1/activity/daily", params={"days": 3}, headers=auth_headers).json()

        assert len(points) == 3
        assert points[0]["date"] < points[-1]["date"]
        assert [(p["count"], p["xp"]) for p in points] == [(0, 0), (0, 0), (1, 4)]


@pytest.mark.integration
class TestAccountsAPI:
    """Test account CRUD and the bank statement import."""

    def test_create_list_and_set_balance(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)

        assert account["is_active"] is True
        assert account["currency"] == "EUR"

        response = client.put(
            f"/v1/finance/accounts/{account['id']}/balance",
            json={"current_balance": 123.456},
            headers=auth_headers,
        )
        assert response.json()["current_balance"] == 123.46
        assert [a["id"] for a in client.get("/v1/finance/accounts", headers=auth_headers).json()] == [
            account["id"]
        ]

    def test_other_users_account_is_forbidden(self, client: TestClient, auth_headers, other_auth_headers):
        account = create_account(client, auth_headers)

        response = client.get(f"/v1/finance/accounts/{account['id']}", headers=other_auth_headers)

        assert response.status_code == 403

    def test_import_statement_skips_duplicates(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)
        statement = (
            "Datum;Verwendungszweck;Betrag\n"
            "01.03.2026;REWE Markt;-45,20\n"
            '02.03.2026;"Gehalt März";2.500,00\n'
        )
        url = f"/v1/finance/accounts/{account['id']}/import"

        first = client.post(url, json={"content": statement}, headers=auth_headers).json()
        second = client.post(url, json={"content": statement}, headers=auth_headers).json()

        assert first == {"imported": 2, "skipped": 0}
        assert second == {"imported": 0, "skipped": 2}
        assert balance(client, auth_headers, account["id"]) == 1000

        expenses = client.get(
            "/v1/finance/transactions", params={"type": "expense"}, headers=auth_headers
        ).json()
        assert [(t["category"], t["amount"]) for t in expenses] == [("Essen", 45.2)]

        feed = client.get(
            "/v1/activity", params={"type": "transaction_imported"}, headers=auth_headers
        ).json()
        assert len(feed) == 1

    def test_delete_account_removes_transactions(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)
        add_transaction(client, auth_headers, account["id"], "expense", 10)

        assert client.delete(f"/v1/finance/accounts/{account['id']}", headers=auth_headers).status_code == 204
        assert client.get("/v1/finance/transactions", headers=auth_headers).json() == []


@pytest.mark.integration
class TestFinanceTransactionsAPI:
    """Test transactions, balances and reports."""

    def test_transactions_move_balances(self, client: TestClient, auth_headers):
        checking = create_account(client, auth_headers)
        savings = create_account(
            client, auth_headers, name="Tagesgeld", account_type="savings", current_balance=0
        )

        assert add_transaction(client, auth_headers, checking["id"], "income", 2000).status_code == 201
        add_transaction(client, auth_headers, checking["id"], "expense", 500, category="Miete")
        add_transaction(
            client, auth_headers, checking["id"], "transfer", 300, to_account_id=savings["id"]
        )

        assert balance(client, auth_headers, checking["id"]) == 2200
        assert balance(client, auth_headers, savings["id"]) == 300

        today = datetime.now(timezone.utc).date()
        cashflow = client.get(
            "/v1/finance/cashflow",
            params={"year": today.year, "month": today.month},
            headers=auth_headers,
        ).json()
        assert cashflow["income"] == 2000
        assert cashflow["expenses"] == 500
        assert cashflow["savings"] == 300
        assert cashflow["net"] == 1500

        net_worth = client.get("/v1/finance/net-worth", headers=auth_headers).json()
        assert net_worth == {"assets": 2500, "liabilities": 0, "net_worth": 2500, "net_worth_level": 33}

    def test_delete_reverses_balance(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)
        expense = add_transaction(client, auth_headers, account["id"], "expense", 99.99).json()
        assert balance(client, auth_headers, account["id"]) == 900.01

        response = client.delete(f"/v1/finance/transactions/{expense['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert balance(client, auth_headers, account["id"]) == 1000

    def test_delete_transfer_after_target_account_deleted(self, client: TestClient, auth_headers):
        giro = create_account(client, auth_headers)
        spar = create_account(client, auth_headers, name="Spar", account_type="savings", current_balance=0)
        transfer = add_transaction(
            client, auth_headers, giro["id"], "transfer", 250, to_account_id=spar["id"]
        ).json()
        assert balance(client, auth_headers, giro["id"]) == 750

        assert client.delete(f"/v1/finance/accounts/{spar['id']}", headers=auth_headers).status_code == 204
        orphaned = client.get("/v1/finance/transactions", headers=auth_headers).json()
        assert orphaned[0]["to_account_id"] is None

        response = client.delete(f"/v1/finance/transactions/{transfer['id']}", headers=auth_headers)

        assert response.status_code == 204
        assert balance(client, auth_headers, giro["id"]) == 1000
        assert client.get("/v1/finance/transactions", headers=auth_headers).json() == []

    def test_transfer_needs_distinct_target(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)

        missing = add_transaction(client, auth_headers, account["id"], "transfer", 10)
        same = add_transaction(
            client, auth_headers, account["id"], "transfer", 10, to_account_id=account["id"]
        )

        assert missing.status_code == 422
        assert same.status_code == 400
        assert balance(client, auth_headers, account["id"]) == 1000

    def test_totals_by_category(self, client: TestClient, auth_headers):
        account = create_account(client, auth_headers)
        add_transaction(client, auth_headers, account["id"], "expense", 20, category="Essen")
        add_transaction(client, auth_headers, account["id"], "expense", 30, category="Essen")
        add_transaction(client, auth_headers, account["id"], "expense", 80, category="Mobilität")
        add_transaction(client, auth_headers, account["id"], "expense", 5)

        rows = client.get("/v1/finance/transactions/by-category", headers=auth_headers).json()

        assert [(r["category"], r["total"], r["count"]) for r in rows] == [
            ("Mobilität", 80, 1),
            ("Essen", 50, 2),
            ("Sonstiges", 5, 1),
        ]

    def test_cashflow_history_is_oldest_first(self, client: TestClient, auth_headers):
        history = client.get(
            "/v1/finance/cashflow/history", params={"months": 3}, headers=auth_headers
        ).json()

        today = datetime.now(timezone.utc).date()
        assert len(history) == 3
        assert (history[-1]["year"], history[-1]["month"]) == (today.year, today.month)

    def test_compound_interest_calculator(self, client: TestClient, auth_headers):
        response = client.get(
            "/v1/finance/calculator/compound-interest",
            params={"principal": 1000, "monthly_contribution": 100, "months": 12, "target": 2000},
            headers=auth_headers,
        )

        assert response.json() == {"projected_amount": 2200.0, "months_to_goal": 10}


@pytest.mark.integration
class TestSavingsGoalsAPI:
    """Test savings goals and the achievement reward."""

    def test_reaching_goal_pays_once(self, client: TestClient, auth_headers):
        goal = client.post(
            "/v1/finance/savings-goals",
            json={"name": "Fahrrad", "target_amount": 800},
            headers=auth_headers,
        ).json()
        url = f"/v1/finance/savings-goals/{goal['id']}/amount"

        partway = client.put(url, json={"current_amount": 400}, headers=auth_headers).json()
        reached = client.put(url, json={"current_amount": 900}, headers=auth_headers).json()
        again = client.put(url, json={"current_amount": 950}, headers=auth_headers).json()

        assert partway["goal"]["progress_percent"] == 50.0
        assert partway["achieved_now"] is False
        assert reached["achieved_now"] is True
        assert reached["xp_awarded"] == 50
        assert reached["achievements_unlocked"] == ["first_savings_goal"]
        assert reached["goal"]["is_achieved"] is True
        assert again["xp_awarded"] == 0
        # 50 for the goal plus 25 for the first savings achievement
        assert client.get("/v1/factions/finanzen", headers=auth_headers).json()["total_xp"] == 75

    def test_dropping_below_target_clears_achievement_without_repaying(
        self, client: TestClient, auth_headers
    ):
        goal = client.post(
            "/v1/finance/savings-goals",
            json={"name": "Notgroschen", "target_amount": 1000},
            headers=auth_headers,
        ).json()
        url = f"/v1/finance/savings-goals/{goal['id']}/amount"

        reached = client.put(url, json={"current_amount": 1000}, headers=auth_headers).json()
        dropped = client.put(url, json={"current_amount": 600}, headers=auth_headers).json()
        regained = client.put(url, json={"current_amount": 1200}, headers=auth_headers).json()

        assert reached["xp_awarded"] == 75
        assert dropped["goal"]["is_achieved"] is False
        assert dropped["goal"]["achieved_at"] is None
        assert regained["achieved_now"] is True
        assert regained["goal"]["is_achieved"] is True
        assert regained["xp_awarded"] == 0
        assert regained["achievements_unlocked"] == []
        assert client.get("/v1/factions/finanzen", headers=auth_headers).json()["total_xp"] == 100
        feed = client.get("/v1/activity", params={"type": "goal_achieved"}, headers=auth_headers).json()
        assert len(feed) == 1

    def test_raising_target_reopens_goal(self, client: TestClient, auth_headers):
        goal = client.post(
            "/v1/finance/savings-goals",
            json={"name": "Laptop", "target_amount": 500},
            headers=auth_headers,
        ).json()
        client.put(
            f"/v1/finance/savings-goals/{goal['id']}/amount",
            json={"current_amount": 500},
            headers=auth_headers,
        )

        patched = client.patch(
            f"/v1/finance/savings-goals/{goal['id']}", json={"target_amount": 900}, headers=auth_headers
        ).json()

        assert patched["is_achieved"] is False
        assert patched["progress_percent"] == 55.6

    def test_goal_crud(self, client: TestClient, auth_headers, other_auth_headers):
        goal = client.post(
            "/v1/finance/savings-goals",
            json={"name": "Urlaub", "target_amount": 2000, "monthly_contribution": 100},
            headers=auth_headers,
        ).json()

        assert goal["start_date"] == datetime.now(timezone.utc).date().isoformat()
        assert goal["months_to_goal"] == 20

        patched = client.patch(
            f"/v1/finance/savings-goals/{goal['id']}", json={"name": "Reise"}, headers=auth_headers
        ).json()
        assert patched["name"] == "Reise"
        assert client.get(
            f"/v1/finance/savings-goals/{goal['id']}", headers=other_auth_headers
        ).status_code == 403
        assert client.delete(
            f"/v1/finance/savings-goals/{goal['id']}", headers=auth_headers
        ).status_code == 204
        assert client.get("/v1/finance/savings-goals", headers=auth_headers).json() == []
