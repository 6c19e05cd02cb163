import math
from datetime import date

import pytest

from services.runway_service import (
    BurnRateTracker,
    average,
    estimate_runway,
    risk_level,
    runway_status,
)

NOW = date(2026, 2, 15)


@pytest.mark.parametrize("runway, status", [
    (math.inf, "safe"),
    (9.0, "safe"),
    (8.9, "warning"),
    (6.0, "warning"),
    (5.99, "danger"),
    (3.0, "danger"),
    (2.99, "critical"),
    (0.0, "critical"),
])
def test_runway_banding(runway, status):
    assert runway_status(runway) == status


def test_risk_levels():
    assert [risk_level(s) for s in ("safe", "warning", "danger", "critical")] == [25, 50, 75, 100]


def test_average_of_empty_sample_is_zero():
    assert average([]) == 0.0


def test_runway_without_income():
    est = estimate_runway(12000.0, [1000.0, 2000.0, 3000.0])

    assert est.avg_burn == pytest.approx(2000.0)
    assert est.runway_months == pytest.approx(6.0)
    assert est.status == "warning"
    assert est.risk_level == 50
    assert est.sample_size == 3


def test_zero_burn_is_unbounded():
    est = estimate_runway(500.0, [])

    assert est.is_unbounded
    assert est.status == "safe"


def test_income_offsets_burn():
    est = estimate_runway(3000.0, [2000.0], income_sample=[1500.0])

    assert est.net_burn == pytest.approx(500.0)
    assert est.runway_months == pytest.approx(6.0)


def test_income_covering_burn_is_unbounded():
    est = estimate_runway(100.0, [1000.0], income_sample=[1200.0])

    assert est.is_unbounded


def test_estimator_is_deterministic():
    sample = [812.5, 940.0, 1033.25]
    assert estimate_runway(7000.0, sample) == estimate_runway(7000.0, sample)


def test_tracker_keeps_burn_and_runway_in_step():
    tracker = BurnRateTracker(current_cash=6000.0, expenses=[1000.0])
    assert tracker.estimate.runway_months == pytest.approx(6.0)

    est = tracker.add_expense(2000.0)
    assert est.avg_burn == pytest.approx(1500.0)
    assert est.runway_months == pytest.approx(4.0)
    assert tracker.estimate is est

    est = tracker.remove_expense(0)
    assert tracker.expenses == [2000.0]
    assert est.runway_months == pytest.approx(3.0)

    est = tracker.set_current_cash(20000.0)
    assert est.status == "safe"


def test_tracker_income_switches_to_net_burn():
    tracker = BurnRateTracker(current_cash=6000.0, expenses=[1000.0])

    assert tracker.set_incomes([400.0]).runway_months == pytest.approx(10.0)
    assert math.isinf(tracker.set_incomes([1500.0]).runway_months)
    assert tracker.set_incomes(None).runway_months == pytest.approx(6.0)


def test_tracker_rejects_negative_expense():
    tracker = BurnRateTracker(current_cash=100.0)
    with pytest.raises(ValueError):
        tracker.add_expense(-5.0)
    assert tracker.expenses == []


def test_history_uses_months_with_activity(runway_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 300.0, "2025-12-10", "cat_food")
    tx_svc.create(checking.id, "expense", 500.0, "2026-02-01", "cat_food")
    tx_svc.create(checking.id, "income", 900.0, "2026-02-02", "cat_salary")
    # Outside a three-month window
    tx_svc.create(checking.id, "expense", 10000.0, "2025-11-30", "cat_food")

    history = runway_svc.get_monthly_history(3, NOW)

    assert [row["month"] for row in history] == ["2025-12", "2026-02"]
    assert history[1]["income"] == pytest.approx(900.0)


def test_transfer_only_month_is_not_a_burn_sample(runway_svc, tx_svc, checking, savings):
    tx_svc.create(checking.id, "expense", 600.0, "2026-02-03", "cat_food")
    tx_svc.create(checking.id, "transfer", 50.0, "2026-01-12", to_account_id=savings.id)

    est = runway_svc.estimate_from_history(months=3, now=NOW)

    assert [row["month"] for row in runway_svc.get_monthly_history(3, NOW)] == ["2026-02"]
    assert est.sample_size == 1
    assert est.avg_burn == pytest.approx(600.0)


def test_estimate_from_history_defaults_to_total_balance(runway_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 100.0, "2026-01-10", "cat_food")
    tx_svc.create(checking.id, "expense", 300.0, "2026-02-01", "cat_food")

    est = runway_svc.estimate_from_history(months=3, now=NOW)

    # 1000 initial - 400 spent, burning 200 a month
    assert est.current_cash == pytest.approx(600.0)
    assert est.avg_burn == pytest.approx(200.0)
    assert est.runway_months == pytest.approx(3.0)
    assert est.status == "danger"


def test_estimate_from_history_with_income(runway_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 400.0, "2026-02-01", "cat_food")
    tx_svc.create(checking.id, "income", 300.0, "2026-02-02", "cat_salary")

    est = runway_svc.estimate_from_history(months=1, include_income=True, current_cash=1000.0, now=NOW)

    assert est.net_burn == pytest.approx(100.0)
    assert est.runway_months == pytest.approx(10.0)


def test_history_window_must_be_positive(runway_svc):
    with pytest.raises(ValueError):
        runway_svc.get_monthly_history(0)
