from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from backend.bizdash import models
from backend.bizdash.services import FinancialReportService


def _dec(value) -> Decimal:
    return Decimal(str(value))


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_summary_counts_subscription_income_once(client, seed_financial_data):
    response = client.get(
        "/financial/summary",
        params={"start_date": "2024-05-01", "end_date": "2024-05-31", "as_of": "2024-05-31"},
    )
    assert response.status_code == 200
    payload = response.json()
    summary = payload["summary"]

    assert _dec(summary["paid_income_from_entries"]) == Decimal("300")
    assert _dec(summary["paid_subscription_income"]) == Decimal("500")
    assert _dec(summary["paid_income"]) == Decimal("800")
    assert _dec(summary["pending_income_from_entries"]) == Decimal("250")
    assert _dec(summary["pending_subscription_income"]) == Decimal("6000")
    assert _dec(summary["pending_income"]) == Decimal("6250")
    assert _dec(summary["paid_expenses"]) == Decimal("400")
    # The only open expense is partial, which does not count as pending.
    assert _dec(summary["pending_expenses"]) == Decimal("0")
    assert _dec(summary["profit"]) == Decimal("400")
    assert _dec(summary["profit_margin"]) == Decimal("50")
    assert _dec(summary["break_even_progress"]) == Decimal("200")
    assert _dec(summary["surplus_deficit"]) == Decimal("400")
    assert summary["sales_count"] == 2

    assert [bucket["month"] for bucket in payload["monthly"]] == ["2024-05"]
    assert payload["window"] == {"start": "2024-05-01", "end": "2024-05-31"}


def test_summary_rankings_and_categories(client, seed_financial_data):
    response = client.get(
        "/financial/summary", params={"period_key": "2024-05", "as_of": "2024-05-31"}
    )
    assert response.status_code == 200
    payload = response.json()

    categories = payload["categories"]
    assert [(item["name"], _dec(item["value"])) for item in categories] == [
        ("Rent", Decimal("400"))
    ]
    assert categories[0]["color"] == "#ff0000"

    by_sales = payload["top_customers_by_sales"]
    assert [(item["name"], item["count"]) for item in by_sales] == [("Bravo Café", 2)]
    assert _dec(by_sales[0]["total"]) == Decimal("200")

    by_subscription = payload["top_customers_by_subscription"]
    assert [item["name"] for item in by_subscription] == ["Acme Studio"]
    assert _dec(by_subscription[0]["monthly_value"]) == Decimal("500")


def test_summary_scoped_to_one_customer(client, seed_financial_data):
    bravo_id = str(seed_financial_data["bravo"].id)

    response = client.get(
        "/financial/summary",
        params={"period_key": "2024-05", "as_of": "2024-05-31", "customer_id": bravo_id},
    )
    assert response.status_code == 200
    summary = response.json()["summary"]

    assert _dec(summary["paid_income"]) == Decimal("300")
    assert _dec(summary["pending_subscription_income"]) == Decimal("0")
    assert _dec(summary["paid_expenses"]) == Decimal("0")
    assert response.json()["customer_id"] == bravo_id


def test_summary_rejects_inverted_window(client):
    response = client.get(
        "/financial/summary", params={"start_date": "2024-06-01", "end_date": "2024-05-01"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "start_date cannot be after end_date"


def test_summary_rejects_malformed_period_key(client):
    response = client.get("/financial/summary", params={"period_key": "2024/05"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid period key format, expected YYYY-MM"


def test_monthly_series_matches_summary_totals(client, seed_financial_data):
    params = {"start_date": "2024-04-01", "end_date": "2024-06-30"}
    monthly = client.get("/financial/monthly", params=params)
    summary = client.get("/financial/summary", params={**params, "as_of": "2024-06-30"})
    assert monthly.status_code == 200
    assert summary.status_code == 200

    buckets = monthly.json()
    assert [bucket["month"] for bucket in buckets] == ["2024-04", "2024-05", "2024-06"]
    assert sum(_dec(bucket["income"]) for bucket in buckets) == _dec(
        summary.json()["summary"]["paid_income"]
    )
    assert sum(_dec(bucket["expenses"]) for bucket in buckets) == _dec(
        summary.json()["summary"]["paid_expenses"]
    )


def test_break_even_endpoint(client):
    response = client.get("/financial/break-even", params={"income": "100", "expenses": "0"})

    assert response.status_code == 200
    assert _dec(response.json()["progress"]) == Decimal("200")
    assert _dec(response.json()["surplus"]) == Decimal("100")


def test_break_even_endpoint_rejects_negative_amounts(client):
    response = client.get("/financial/break-even", params={"income": "-1", "expenses": "0"})

    assert response.status_code == 422


def test_dashboard_reports_current_month_and_year(client, db_session, seed_financial_data):
    db_session.add(
        models.FinancialEntry(
            type=models.EntryType.EXPENSE,
            description="Electricity",
            amount=Decimal("120"),
            remaining_amount=Decimal("30"),
            payment_status=models.PaymentStatus.PENDING,
            created_at=datetime(2024, 5, 25, 12, 0, 0),
        )
    )
    db_session.commit()

    response = client.get("/financial/dashboard", params={"as_of": "2024-05-31"})
    assert response.status_code == 200
    payload = response.json()

    assert payload["current_month"]["month"] == "2024-05"
    assert _dec(payload["current_month"]["income"]) == Decimal("800")
    assert _dec(payload["current_month"]["progress"]) == Decimal("200")
    assert len(payload["monthly"]) == 12
    assert _dec(payload["annual_paid_income"]) == Decimal("800")
    assert _dec(payload["year"]["surplus"]) == Decimal("400")
    assert _dec(payload["pending_income_from_entries"]) == Decimal("250")
    assert _dec(payload["pending_subscription_income"]) == Decimal("6000")
    assert _dec(payload["total_pending_income"]) == Decimal("6250")
    # Full amount of pending rows only; the partial supplies entry is left out.
    assert _dec(payload["total_pending_expenses"]) == Decimal("120")
    assert payload["current_month_receivables"] is None


def test_receivables_group_unpaid_income_by_due_month(client, seed_financial_data):
    response = client.get("/financial/receivables", params={"as_of": "2024-05-31"})
    assert response.status_code == 200
    receivables = response.json()

    assert receivables[0]["month"] == "2024-06"
    assert receivables[-1]["month"] == "2025-05"
    assert len(receivables) == 12

    june = receivables[0]
    assert _dec(june["total"]) == Decimal("750")
    assert [item["source"] for item in june["entries"]] == ["financial", "subscription"]
    assert june["entries"][1]["due_date"] == "2024-06-10"


def test_horizon_is_configurable(client, seed_financial_data, monkeypatch):
    monkeypatch.setenv("FINANCIAL_PROJECTION_HORIZON_MONTHS", "3")

    response = client.get("/financial/dashboard", params={"as_of": "2024-05-31"})

    assert response.status_code == 200
    assert _dec(response.json()["pending_subscription_income"]) == Decimal("1500")


def test_export_carries_the_report_figures(client, seed_financial_data):
    params = {"period_key": "2024-05", "as_of": "2024-05-31"}
    export = client.get("/financial/report/export", params=params)
    report = client.get("/financial/summary", params=params)
    assert export.status_code == 200

    payload = export.json()
    assert payload["type"] == "financial"
    assert payload["generated_at"]
    assert payload["report"]["summary"] == report.json()["summary"]
    assert payload["report"]["monthly"] == report.json()["monthly"]


def test_database_failure_returns_500(client, monkeypatch):
    def _broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(FinancialReportService, "dashboard", staticmethod(_broken))

    response = client.get("/financial/dashboard")

    assert response.status_code == 500
    assert response.json()["detail"] == "Could not load financial data. Try again later."


def test_customer_profile_endpoint(client, seed_financial_data):
    bravo_id = str(seed_financial_data["bravo"].id)

    response = client.get(
        f"/customers/{bravo_id}/profile",
        params={"start_date": "2024-05-01", "end_date": "2024-06-30"},
    )
    assert response.status_code == 200
    profile = response.json()

    assert profile["customer_id"] == bravo_id
    assert _dec(profile["total_sales_amount"]) == Decimal("350")
    assert profile["sales_count"] == 3
    assert _dec(profile["income_from_entries"]) == Decimal("300")
    assert profile["top_items"][0]["description"] == "Logo design"
    assert profile["top_items"][0]["quantity"] == 2
    assert [item["month"] for item in profile["monthly_history"]] == ["2024-05", "2024-06"]
    assert profile["first_purchase"] == "2024-05-08"
    assert profile["last_purchase"] == "2024-06-03"


def test_customer_profile_includes_subscription_payments(client, seed_financial_data):
    acme_id = str(seed_financial_data["acme"].id)

    response = client.get(f"/customers/{acme_id}/profile", params={"period_key": "2024-05"})
    assert response.status_code == 200
    profile = response.json()

    assert _dec(profile["total_subscription_payments"]) == Decimal("500")
    assert _dec(profile["income_from_entries"]) == Decimal("0")
    assert _dec(profile["total_monthly_subscription"]) == Decimal("500")
    assert profile["subscriptions_count"] == 1


def test_customer_profile_unknown_customer_returns_404(client):
    response = client.get(f"/customers/{uuid.uuid4()}/profile")

    assert response.status_code == 404
    assert response.json()["detail"] == "Customer not found"
