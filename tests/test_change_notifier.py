import pytest
from loguru import logger

from services.change_notifier import ChangeNotifier


@pytest.fixture
def events(notifier):
    seen = []
    notifier.subscribe(seen.append)
    return seen


def test_emit_reaches_every_listener(notifier, events):
    other = []
    notifier.subscribe(other.append)

    notifier.emit("budget")

    assert events == ["budget"]
    assert other == ["budget"]


def test_unknown_scope_becomes_full(notifier, events):
    notifier.emit("weather")

    assert events == ["full"]


def test_unsubscribe(notifier, events):
    extra = []
    unsubscribe = notifier.subscribe(extra.append)
    unsubscribe()
    unsubscribe()

    notifier.emit("goal")

    assert extra == []
    assert events == ["goal"]


def test_batch_sends_a_single_scope_once(notifier, events):
    with notifier.batch():
        notifier.emit("transaction")
        notifier.emit("transaction")
        assert events == []

    assert events == ["transaction"]


def test_batch_with_mixed_scopes_sends_full(notifier, events):
    with notifier.batch():
        notifier.emit("transaction")
        notifier.emit("account")

    assert events == ["full"]


def test_nested_batches_flush_at_the_outermost(notifier, events):
    with notifier.batch():
        with notifier.batch():
            notifier.emit("bill")
        assert events == []

    assert events == ["bill"]


def test_empty_batch_sends_nothing(notifier, events):
    with notifier.batch():
        pass

    assert events == []


def test_failing_listener_is_logged_and_others_still_run(notifier):
    messages = []
    sink_id = logger.add(messages.append, level="ERROR")

    def broken(scope):
        raise RuntimeError("boom")

    seen = []
    notifier.subscribe(broken)
    notifier.subscribe(seen.append)
    try:
        notifier.emit("loan")
    finally:
        logger.remove(sink_id)

    assert seen == ["loan"]
    assert any("loan" in str(m) for m in messages)


def test_services_emit_their_scope(account_svc, tx_svc, notifier, events, checking):
    tx_svc.create(checking.id, "income", 10.0, "2026-02-01", "cat_salary")

    assert events[-1] == "transaction"


def test_writes_without_a_notifier_still_work(daos):
    from services.account_service import AccountService

    svc = AccountService(daos["account"])

    assert svc.create("Wallet", "cash").name == "Wallet"
