from datetime import date

import pytest

from models.budget import Budget
from utils.date_helpers import period_window
from utils.errors import ValidationError

NOW = date(2026, 2, 15)


def test_period_windows():
    assert period_window("weekly", NOW) == ("2026-02-08", "2026-02-15")
    assert period_window("monthly", NOW) == ("2026-02-01", "2026-02-15")
    assert period_window("yearly", NOW) == ("2026-01-01", "2026-02-15")


def test_unknown_period_uses_monthly_window():
    assert period_window("fortnightly", NOW) == period_window("monthly", NOW)


def test_monthly_budget_counts_only_this_month(budget_svc, tx_svc, checking):
    budget = budget_svc.create("cat_food", "monthly", 400.0)
    tx_svc.create(checking.id, "expense", 150.0, "2026-02-03", "cat_food")
    tx_svc.create(checking.id, "expense", 100.0, "2026-02-10", "cat_food")
    tx_svc.create(checking.id, "expense", 300.0, "2026-01-20", "cat_food")

    assert budget_svc.get_spent(budget, NOW) == pytest.approx(250.0)


def test_spent_ignores_income_and_other_categories(budget_svc, tx_svc, checking):
    budget = budget_svc.create("cat_food", "monthly", 400.0)
    tx_svc.create(checking.id, "expense", 20.0, "2026-02-03", "cat_transport")
    tx_svc.create(checking.id, "income", 999.0, "2026-02-03", "cat_salary")

    assert budget_svc.get_spent(budget, NOW) == 0.0


def test_changing_period_changes_spent(budget_svc, tx_svc, checking):
    budget = budget_svc.create("cat_food", "weekly", 400.0)
    tx_svc.create(checking.id, "expense", 50.0, "2026-02-14", "cat_food")
    tx_svc.create(checking.id, "expense", 80.0, "2026-02-02", "cat_food")
    tx_svc.create(checking.id, "expense", 10.0, "2026-01-05", "cat_food")

    assert budget_svc.get_spent(budget, NOW) == pytest.approx(50.0)
    budget = budget_svc.update(budget.id, "cat_food", "monthly", 400.0)
    assert budget_svc.get_spent(budget, NOW) == pytest.approx(130.0)
    budget = budget_svc.update(budget.id, "cat_food", "yearly", 400.0)
    assert budget_svc.get_spent(budget, NOW) == pytest.approx(140.0)


def test_window_edges_are_inclusive(budget_svc, tx_svc, checking):
    budget = budget_svc.create("cat_food", "weekly", 100.0)
    tx_svc.create(checking.id, "expense", 1.0, "2026-02-08", "cat_food")
    tx_svc.create(checking.id, "expense", 2.0, "2026-02-15", "cat_food")
    tx_svc.create(checking.id, "expense", 4.0, "2026-02-07", "cat_food")
    tx_svc.create(checking.id, "expense", 8.0, "2026-02-16", "cat_food")

    assert budget_svc.get_spent(budget, NOW) == pytest.approx(3.0)


def test_unsaved_budget_with_unknown_period_falls_back(budget_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 30.0, "2026-02-01", "cat_food")
    budget = Budget(id="b1", category_id="cat_food", period="quarterly", limit_amount=10.0)

    assert budget_svc.get_spent(budget, NOW) == pytest.approx(30.0)


def test_status_and_alerts(budget_svc, tx_svc, checking):
    food = budget_svc.create("cat_food", "monthly", 100.0)
    budget_svc.create("cat_transport", "monthly", 100.0)
    tx_svc.create(checking.id, "expense", 95.0, "2026-02-03", "cat_food")
    tx_svc.create(checking.id, "expense", 10.0, "2026-02-03", "cat_transport")

    status = {b.category_id: b for b in budget_svc.get_budget_status(NOW)}
    assert status["cat_food"].percentage == pytest.approx(0.95)
    assert status["cat_transport"].remaining == pytest.approx(90.0)

    alerts = budget_svc.get_alerts(NOW)
    assert [b.id for b in alerts] == [food.id]


def test_budget_rejects_income_category_and_bad_period(budget_svc):
    with pytest.raises(ValidationError):
        budget_svc.create("cat_salary", "monthly", 100.0)
    with pytest.raises(ValidationError):
        budget_svc.create("cat_food", "daily", 100.0)
    with pytest.raises(ValidationError):
        budget_svc.create("cat_food", "monthly", -1.0)


def test_weekly_window_crosses_year_boundary():
    assert period_window("weekly", date(2026, 1, 3)) == ("2025-12-27", "2026-01-03")
