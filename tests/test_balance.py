import pytest

from utils.errors import NotFoundError, StorageUnavailableError, ValidationError


def test_initial_plus_income_minus_expense(account_svc, tx_svc, checking):
    tx_svc.create(checking.id, "income", 500.0, "2026-02-01", "cat_salary")
    tx_svc.create(checking.id, "expense", 200.0, "2026-02-02", "cat_food")

    assert account_svc.get_balance(checking.id) == pytest.approx(1300.0)


def test_transfers_move_money_between_accounts(account_svc, tx_svc, checking, savings):
    tx_svc.create(checking.id, "transfer", 250.0, "2026-02-03", to_account_id=savings.id)

    assert account_svc.get_balance(checking.id) == pytest.approx(750.0)
    assert account_svc.get_balance(savings.id) == pytest.approx(250.0)
    assert account_svc.get_total_balance() == pytest.approx(1000.0)


def test_balance_ignores_dates(account_svc, tx_svc, checking):
    tx_svc.create(checking.id, "expense", 100.0, "2019-01-01", "cat_food")
    tx_svc.create(checking.id, "income", 40.0, "2031-12-31", "cat_salary")

    assert account_svc.get_balance(checking.id) == pytest.approx(940.0)


def test_balance_is_recomputed_after_a_write(account_svc, tx_svc, checking):
    assert account_svc.get_balance(checking.id) == pytest.approx(1000.0)
    tx = tx_svc.create(checking.id, "expense", 75.0, "2026-02-05", "cat_food")
    assert account_svc.get_balance(checking.id) == pytest.approx(925.0)
    tx_svc.delete(tx.id)
    assert account_svc.get_balance(checking.id) == pytest.approx(1000.0)


def test_balances_for_every_account(account_svc, tx_svc, checking, savings):
    tx_svc.create(savings.id, "income", 10.0, "2026-02-05", "cat_salary")

    balances = account_svc.get_balances()

    assert balances == pytest.approx({checking.id: 1000.0, savings.id: 10.0})


def test_unknown_account_raises_not_found(account_svc):
    with pytest.raises(NotFoundError):
        account_svc.get_balance("no-such-account")


def test_closed_store_raises_storage_unavailable(db, account_svc, checking):
    db.close()
    assert not db.is_open
    with pytest.raises(StorageUnavailableError):
        account_svc.get_balance(checking.id)


def test_account_with_transfers_cannot_be_deleted(account_svc, tx_svc, checking, savings):
    tx_svc.create(checking.id, "transfer", 300.0, "2026-02-03", to_account_id=savings.id)

    for account in (savings, checking):
        with pytest.raises(ValidationError):
            account_svc.delete(account.id)

    assert account_svc.get_balance(checking.id) == pytest.approx(700.0)
    assert account_svc.get_balance(savings.id) == pytest.approx(300.0)


def test_deleting_account_removes_its_own_transactions(account_svc, tx_svc, checking, savings):
    tx_svc.create(savings.id, "income", 40.0, "2026-02-03", "cat_salary")
    kept = tx_svc.create(checking.id, "expense", 25.0, "2026-02-03", "cat_food")

    account_svc.delete(savings.id)

    assert [t.id for t in tx_svc.get_all()] == [kept.id]
    assert account_svc.get_balance(checking.id) == pytest.approx(975.0)


def test_account_can_be_deleted_once_its_transfers_are_gone(account_svc, tx_svc, checking, savings):
    moved = tx_svc.create(checking.id, "transfer", 300.0, "2026-02-03", to_account_id=savings.id)
    tx_svc.delete(moved.id)

    account_svc.delete(savings.id)

    assert account_svc.get_by_id(savings.id) is None
    assert account_svc.get_balance(checking.id) == pytest.approx(1000.0)
