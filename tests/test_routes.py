"""HTTP route tests against the in-memory services."""

from __future__ import annotations

from decimal import Decimal

from conftest import CHILD_ID, PARENT_ID
from fastapi.testclient import TestClient


def test_status_change_and_balance(api_client: TestClient, add_chore) -> None:
    """Completing an auto-approved chore returns the earning and updates the balance."""
    chore = add_chore(earn_value=Decimal("5"), auto_approve=True)

    response = api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "completed"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["changed"] is True
    assert payload["chore_log"]["status"] == "approved"
    assert Decimal(payload["transaction"]["amount"]) == Decimal("5")

    balance = api_client.get(f"/people/{CHILD_ID}/balance").json()
    assert Decimal(balance["balance"]) == Decimal("5")

    log = api_client.get(f"/chores/{chore.id}/logs/2026-03-11").json()
    assert log["chore_log"]["version"] == 1

    transactions = api_client.get(f"/people/{CHILD_ID}/transactions").json()["transactions"]
    assert [row["type"] for row in transactions] == ["chore_earning"]


def test_domain_errors_use_standard_shape(api_client: TestClient, actor, add_chore) -> None:
    """Transition and authorization failures map to 409 and 403."""
    chore = add_chore(penalty_value=Decimal("1"))

    forbidden = api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "missed"},
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "NOT_AUTHORIZED"

    actor.id = PARENT_ID
    api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "missed"},
    )
    invalid = api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "approved"},
    )
    assert invalid.status_code == 409
    assert invalid.json() == {
        "error": "Cannot move a chore from missed to approved",
        "code": "INVALID_TRANSITION",
    }

    missing = api_client.get("/chores/999/logs/2026-03-11")
    assert missing.status_code == 404


def test_invalid_payload_is_422(api_client: TestClient, add_chore) -> None:
    """Unknown statuses are rejected by validation."""
    chore = add_chore()
    response = api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "finished"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_INPUT"


def test_people_routes_are_limited_to_self_or_parent(api_client: TestClient, actor) -> None:
    """Children may read only their own data."""
    assert api_client.get("/people/child-2/balance").status_code == 403
    assert api_client.get(f"/people/{CHILD_ID}/progress").status_code == 200

    actor.id = PARENT_ID
    assert api_client.get("/people/child-2/balance").status_code == 200


def test_weekly_progress_routes(api_client: TestClient, add_weekly_chore) -> None:
    """Progress endpoints expose derived quota fields."""
    chore = add_weekly_chore(earn_value=Decimal("2"), weekly_target_count=2)

    progress = api_client.get(f"/chores/{chore.id}/progress", params={"as_of": "2026-03-11"})
    assert progress.status_code == 200
    body = progress.json()["progress"]
    assert body["week_start"] == "2026-03-09"
    assert body["remaining_count"] == 2
    assert body["quota_met"] is False

    own = api_client.get(f"/people/{CHILD_ID}/chores/{chore.id}/progress").json()["progress"]
    assert own["target_count"] == 2

    summary = api_client.get(f"/people/{CHILD_ID}/progress").json()["summary"]
    assert summary["days_remaining"] == 5
    assert len(summary["chores"]) == 1


def test_reconcile_requires_parent(api_client: TestClient, actor, add_chore) -> None:
    """Repair and weekly runs are parent-only."""
    chore = add_chore()
    assert api_client.post(f"/chores/{chore.id}/logs/2026-03-11/reconcile").status_code == 403
    assert api_client.post("/reconciliation/weekly").status_code == 403

    actor.id = PARENT_ID
    api_client.post(
        f"/chores/{chore.id}/logs/2026-03-11/status",
        json={"desired_status": "approved"},
    )
    repaired = api_client.post(f"/chores/{chore.id}/logs/2026-03-11/reconcile")
    assert repaired.status_code == 200
    assert repaired.json()["committed"] is False


def test_weekly_reconciliation_routes(api_client: TestClient, actor, add_weekly_chore) -> None:
    """Parents can trigger the weekly run; anyone can read its status."""
    add_weekly_chore(earn_value=Decimal("10"))

    before = api_client.get("/reconciliation/weekly").json()
    assert before["reconciliation_needed"] is True
    assert before["previous_week_end"] == "2026-03-08"

    actor.id = PARENT_ID
    run = api_client.post("/reconciliation/weekly", json={"week_end_date": "2026-03-08"})
    assert run.status_code == 200
    [result] = run.json()["results"]
    assert result["person_id"] == CHILD_ID
    assert Decimal(result["total_penalty"]) == Decimal("1.00")
    assert result["had_penalties"] is True

    after = api_client.get("/reconciliation/weekly").json()
    assert after["reconciliation_needed"] is False
    assert after["last_reconciled_week_end"] == "2026-03-08"

    current = api_client.post("/reconciliation/weekly", json={"week_end_date": "2026-03-11"})
    assert current.status_code == 422
    assert current.json()["code"] == "INVALID_INPUT"


def test_ledger_writes_are_parent_only(api_client: TestClient, actor, repository) -> None:
    """Bonuses, cash-outs and transfers post through parent-only routes."""
    main = repository.list_accounts(CHILD_ID)[0]
    savings = repository.add_account(CHILD_ID, "Savings")
    bonus_url = f"/people/{CHILD_ID}/accounts/{main.id}/bonuses"

    denied = api_client.post(bonus_url, json={"amount": "5", "description": "Report card"})
    assert denied.status_code == 403
    assert denied.json()["code"] == "FORBIDDEN"

    actor.id = PARENT_ID
    bonus = api_client.post(bonus_url, json={"amount": "5", "description": "Report card"})
    assert bonus.status_code == 200
    assert bonus.json()["transaction"]["description"] == "Bonus: Report card"

    overdrawn = api_client.post(
        f"/people/{CHILD_ID}/accounts/{main.id}/cash-out", json={"amount": "8"}
    )
    assert overdrawn.status_code == 400
    assert overdrawn.json()["code"] == "INSUFFICIENT_FUNDS"

    moved = api_client.post(
        f"/people/{CHILD_ID}/transfers",
        json={"from_account_id": main.id, "to_account_id": savings.id, "amount": "2"},
    )
    assert moved.status_code == 200
    assert [Decimal(row["amount"]) for row in moved.json()["transactions"]] == [
        Decimal("-2.00"),
        Decimal("2.00"),
    ]

    balance = api_client.get(f"/people/{CHILD_ID}/balance").json()
    assert Decimal(balance["balance"]) == Decimal("5.00")

    adjustment = api_client.post(
        f"/people/{PARENT_ID}/accounts/{main.id}/adjustments",
        json={"amount": "1", "description": "Fix"},
    )
    assert adjustment.status_code == 404
    same = api_client.post(
        f"/people/{CHILD_ID}/transfers",
        json={"from_account_id": main.id, "to_account_id": main.id, "amount": "1"},
    )
    assert same.status_code == 422


def test_unauthenticated_requests_are_rejected(client: TestClient) -> None:
    """Routes require a bearer token."""
    response = client.get(f"/people/{CHILD_ID}/balance")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"
