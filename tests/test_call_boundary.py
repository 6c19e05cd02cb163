import threading

import pytest

from services.call_boundary import CallBoundary
from utils.errors import NotFoundError


@pytest.fixture
def boundary():
    b = CallBoundary()
    yield b
    b.shutdown()


def test_future_resolves_to_return_value(boundary):
    assert boundary.submit(lambda a, b: a + b, 2, 3).result(timeout=5) == 5


def test_service_exception_surfaces_through_the_future(boundary):
    def fail():
        raise NotFoundError("Account x not found.")

    future = boundary.submit(fail)

    with pytest.raises(NotFoundError, match="Account x"):
        future.result(timeout=5)


def test_calls_run_off_the_caller_thread_one_at_a_time(boundary):
    names = [boundary.call(lambda: threading.current_thread().name) for _ in range(3)]

    assert len(set(names)) == 1
    assert names[0] != threading.current_thread().name


def test_calls_keep_submission_order(boundary):
    order = []
    futures = [boundary.submit(order.append, i) for i in range(20)]
    for f in futures:
        f.result(timeout=5)

    assert order == list(range(20))


def test_submit_after_shutdown_is_refused(boundary):
    boundary.shutdown()
    boundary.shutdown()

    with pytest.raises(RuntimeError):
        boundary.submit(lambda: None)


def test_service_calls_through_the_boundary(boundary, account_svc, checking):
    assert boundary.call(account_svc.get_balance, checking.id) == pytest.approx(1000.0)
