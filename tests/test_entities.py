from datetime import date

import pytest

from models.bill import Bill
from models.loan import Loan
from models.plan import Plan
from models.tax_rule import TaxRule
from utils.errors import NotFoundError, ValidationError

NOW = date(2026, 2, 15)


# ── Accounts ─────────────────────────────────────────────────────────────────

def test_account_names_are_unique_ignoring_case(account_svc, checking):
    with pytest.raises(ValidationError):
        account_svc.create("main checking")


def test_account_update(account_svc, checking):
    updated = account_svc.update(checking.id, "Everyday", "checking", "eur", 250.0)

    assert updated.name == "Everyday"
    assert updated.currency == "EUR"
    assert account_svc.get_balance(checking.id) == pytest.approx(250.0)


def test_account_type_is_checked(account_svc):
    with pytest.raises(ValidationError):
        account_svc.create("Piggy", "jar")


# ── Goals ────────────────────────────────────────────────────────────────────

def test_goal_contributions(goal_svc):
    goal = goal_svc.create("Laptop", 1200.0)

    goal = goal_svc.contribute(goal.id, 300.0)
    assert goal.current_amount == pytest.approx(300.0)
    assert goal.progress == pytest.approx(0.25)
    assert goal.remaining == pytest.approx(900.0)

    goal = goal_svc.contribute(goal.id, -100.0)
    assert goal.current_amount == pytest.approx(200.0)

    with pytest.raises(ValidationError):
        goal_svc.contribute(goal.id, -500.0)


def test_goal_progress_is_capped(goal_svc):
    goal = goal_svc.create("Bike", 500.0, current_amount=800.0)

    assert goal.progress == 1.0
    assert goal.remaining == 0.0


def test_contribute_to_unknown_goal(goal_svc):
    with pytest.raises(NotFoundError):
        goal_svc.contribute("nope", 10.0)


def test_goal_validation(goal_svc, checking):
    with pytest.raises(ValidationError):
        goal_svc.create("", 100.0)
    with pytest.raises(ValidationError):
        goal_svc.create("Zero", 0.0)
    with pytest.raises(ValidationError):
        goal_svc.create("Soon", 100.0, target_date="tomorrow")
    with pytest.raises(ValidationError):
        goal_svc.create("Linked", 100.0, linked_account_id="ghost")


def test_goal_outlives_its_linked_account(goal_svc, account_svc, savings):
    goal = goal_svc.create("House", 50000.0, linked_account_id=savings.id)

    account_svc.delete(savings.id)

    assert goal_svc.get_by_id(goal.id).linked_account_id is None


# ── Bills ────────────────────────────────────────────────────────────────────

def _bill(bill_id, due, paid=False, recurrence="monthly"):
    return Bill(id=bill_id, name=bill_id.title(), amount=50.0, next_due_date=due,
                recurrence=recurrence, is_paid=paid)


def test_upcoming_bills_include_overdue_and_skip_paid(bill_svc):
    bill_svc.save(_bill("late", "2026-02-01"))
    bill_svc.save(_bill("soon", "2026-02-20"))
    bill_svc.save(_bill("edge", "2026-02-22"))
    bill_svc.save(_bill("later", "2026-03-10"))
    bill_svc.save(_bill("paid", "2026-02-16", paid=True))

    upcoming = bill_svc.get_upcoming(days=7, now=NOW)

    assert [b.id for b in upcoming] == ["late", "soon", "edge"]


def test_set_paid(bill_svc):
    bill_svc.save(_bill("water", "2026-02-18"))

    assert bill_svc.set_paid("water").is_paid
    assert bill_svc.get_upcoming(now=NOW) == []
    assert not bill_svc.set_paid("water", paid=False).is_paid

    with pytest.raises(NotFoundError):
        bill_svc.set_paid("ghost")


def test_bill_validation(bill_svc):
    with pytest.raises(ValidationError):
        bill_svc.save(_bill("gym", "2026-02-18", recurrence="daily"))
    with pytest.raises(ValidationError):
        bill_svc.save(_bill("gym", "18/02/2026"))
    with pytest.raises(ValidationError):
        bill_svc.save(Bill(id="", name="  ", amount=1.0, next_due_date="2026-02-18"))


def test_bill_gets_an_id_and_normalized_date(bill_svc):
    saved = bill_svc.save(Bill(id="", name="Phone", amount=35.0, next_due_date="2026/02/18"))

    assert saved.id
    assert bill_svc.get_by_id(saved.id).next_due_date == "2026-02-18"


# ── Loans ────────────────────────────────────────────────────────────────────

def test_loan_figures():
    loan = Loan(id="l", name="Car", principal_amount=20000.0, current_balance=12000.0,
                interest_rate=6.0)

    assert loan.monthly_interest == pytest.approx(60.0)
    assert loan.progress == pytest.approx(0.4)


def test_loan_summary(loan_svc):
    loan_svc.save(Loan(id="a", name="Car", principal_amount=20000.0, current_balance=12000.0,
                       interest_rate=6.0, payment_amount=450.0))
    loan_svc.save(Loan(id="b", name="Card", principal_amount=3000.0, current_balance=2400.0,
                       interest_rate=19.9, payment_amount=120.0))

    summary = loan_svc.get_summary()

    assert summary["count"] == 2
    assert summary["total_debt"] == pytest.approx(14400.0)
    assert summary["total_principal"] == pytest.approx(23000.0)
    assert summary["monthly_payments"] == pytest.approx(570.0)
    assert summary["monthly_interest"] == pytest.approx(60.0 + 2400 * 0.199 / 12)
    assert summary["high_interest_count"] == 1


def test_empty_loan_summary(loan_svc):
    assert loan_svc.get_summary() == {
        "count": 0, "total_debt": 0, "total_principal": 0,
        "monthly_interest": 0, "monthly_payments": 0, "high_interest_count": 0,
    }


def test_loan_validation(loan_svc):
    with pytest.raises(ValidationError):
        loan_svc.save(Loan(id="", name="X", principal_amount=100.0, current_balance=50.0,
                           interest_rate=1.0, payment_frequency="daily"))
    with pytest.raises(ValidationError):
        loan_svc.save(Loan(id="", name="X", principal_amount=-1.0, current_balance=0.0,
                           interest_rate=1.0))


# ── Plans ────────────────────────────────────────────────────────────────────

@pytest.fixture
def loan(loan_svc):
    return loan_svc.save(Loan(id="car", name="Car", principal_amount=20000.0,
                              current_balance=12000.0, interest_rate=4.0))


def test_plan_attaches_to_an_existing_item(plan_svc, loan):
    plan = plan_svc.save(Plan(id="", item_type="loan", item_id=loan.id, title="  Refinance  ",
                              scenario_if="Rate drops below 3%", outcome="Save 40/month"))

    assert plan.title == "Refinance"
    assert [p.id for p in plan_svc.get_for_item("loan", loan.id)] == [plan.id]
    assert plan_svc.get_for_item("goal", loan.id) == []


def test_plan_needs_a_real_item(plan_svc, loan):
    with pytest.raises(ValidationError):
        plan_svc.save(Plan(id="", item_type="loan", item_id="ghost", title="Nope"))
    with pytest.raises(ValidationError):
        plan_svc.save(Plan(id="", item_type="bill", item_id=loan.id, title="Nope"))
    with pytest.raises(ValidationError):
        plan_svc.save(Plan(id="", item_type="loan", item_id=loan.id, title=""))


def test_months_overdue_only_moves_when_asked(plan_svc, loan):
    plan = plan_svc.save(Plan(id="", item_type="loan", item_id=loan.id, title="Catch up"))
    assert plan.months_overdue == 0

    assert plan_svc.increment_overdue(plan.id).months_overdue == 1
    assert plan_svc.increment_overdue(plan.id, 2).months_overdue == 3
    assert plan_svc.increment_overdue(plan.id, -10).months_overdue == 0
    assert plan_svc.get_by_id(plan.id).months_overdue == 0

    with pytest.raises(NotFoundError):
        plan_svc.increment_overdue("ghost")


def test_plan_on_a_transaction(plan_svc, tx_svc, checking):
    tx = tx_svc.create(checking.id, "expense", 900.0, "2026-02-03", "cat_housing")

    plan = plan_svc.save(Plan(id="", item_type="transaction", item_id=tx.id,
                              title="Split rent", what_if="Roommate pays half"))

    assert plan_svc.get_for_item("transaction", tx.id)[0].what_if == "Roommate pays half"


# ── Tax rules ────────────────────────────────────────────────────────────────

def test_tax_rules_survive_their_category(daos, category_svc):
    dao = daos["tax_rule"]
    gadgets = category_svc.create("Gadgets", "expense")
    dao.save(TaxRule(id="vat", rate=20.0, category_id=gadgets.id, mode="included"))

    category_svc.delete(gadgets.id)

    rule = dao.get_by_id("vat")
    assert rule.category_id is None
    assert rule.mode == "included"

    dao.delete("vat")
    assert dao.get_all() == []


# ── Transactions ─────────────────────────────────────────────────────────────

def test_transfer_invariants(tx_svc, checking, savings):
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "transfer", 10.0, "2026-02-01")
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "transfer", 10.0, "2026-02-01", to_account_id=checking.id)
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "expense", 10.0, "2026-02-01", "cat_food",
                      to_account_id=savings.id)

    moved = tx_svc.create(checking.id, "transfer", 10.0, "2026-02-01", "cat_food",
                          to_account_id=savings.id)
    assert moved.category_id is None


def test_transaction_field_checks(tx_svc, checking):
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "expense", -1.0, "2026-02-01", "cat_food")
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "expense", 1.0, "next week", "cat_food")
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "refund", 1.0, "2026-02-01", "cat_food")
    with pytest.raises(ValidationError):
        tx_svc.create(checking.id, "expense", 1.0, "2026-02-01")
    with pytest.raises(ValidationError):
        tx_svc.create("ghost", "expense", 1.0, "2026-02-01", "cat_food")


def test_account_filter_matches_both_sides_of_a_transfer(tx_svc, checking, savings):
    tx_svc.create(checking.id, "expense", 5.0, "2026-02-01", "cat_food")
    moved = tx_svc.create(checking.id, "transfer", 10.0, "2026-02-02", to_account_id=savings.id)

    assert [t.id for t in tx_svc.get_all(account_id=savings.id)] == [moved.id]
    assert len(tx_svc.get_all(account_id=checking.id)) == 2
    assert len(tx_svc.get_all(start_date="2026-02-02", end_date="2026-02-02")) == 1


def test_transaction_update(tx_svc, checking):
    tx = tx_svc.create(checking.id, "expense", 5.0, "2026-02-01", "cat_food", merchant="Deli")

    updated = tx_svc.update(tx.id, checking.id, "expense", 7.5, "2026/02/03", "cat_transport")

    assert updated.amount == pytest.approx(7.5)
    assert updated.date == "2026-02-03"
    assert updated.category_name == "Transport"
    with pytest.raises(NotFoundError):
        tx_svc.update("ghost", checking.id, "expense", 1.0, "2026-02-01", "cat_food")
