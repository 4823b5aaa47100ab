from __future__ import annotations

import threading

import pytest

from customer_ingest.dispatch import (
    AbstractDispatcher,
    Dispatcher,
    SequentialDispatcher,
    ThreadedDispatcher,
)
from customer_ingest.domain.models import RawRecord

RECORDS = [RawRecord(customer_id=f"c{i}") for i in range(12)]


def _is_even(raw: RawRecord) -> bool:
    return int(raw.customer_id[1:]) % 2 == 0


@pytest.mark.parametrize("dispatcher", [SequentialDispatcher(), ThreadedDispatcher(workers=3)])
def test_dispatchers_count_successes(dispatcher: AbstractDispatcher) -> None:
    assert isinstance(dispatcher, Dispatcher)
    assert dispatcher.dispatch(RECORDS, _is_even) == 6
    assert dispatcher.dispatch([], _is_even) == 0


def test_sequential_keeps_input_order() -> None:
    seen = []

    def handle(raw: RawRecord) -> bool:
        seen.append(raw.customer_id)
        return True

    SequentialDispatcher().dispatch(RECORDS, handle)

    assert seen == [r.customer_id for r in RECORDS]


def test_threaded_uses_worker_threads() -> None:
    names = set()
    lock = threading.Lock()

    def handle(raw: RawRecord) -> bool:
        with lock:
            names.add(threading.current_thread().name)
        return True

    ThreadedDispatcher(workers=2).dispatch(RECORDS, handle)

    assert names
    assert all(name.startswith("ingest-worker") for name in names)


@pytest.mark.parametrize("dispatcher", [SequentialDispatcher(), ThreadedDispatcher(workers=2)])
def test_handler_exceptions_propagate(dispatcher: AbstractDispatcher) -> None:
    def handle(raw: RawRecord) -> bool:
        if raw.customer_id == "c5":
            raise RuntimeError("log unavailable")
        return True

    with pytest.raises(RuntimeError, match="log unavailable"):
        dispatcher.dispatch(RECORDS, handle)


def test_threaded_rejects_non_positive_workers() -> None:
    with pytest.raises(ValueError, match="workers"):
        ThreadedDispatcher(workers=-1)


def test_threaded_defaults_workers_from_settings() -> None:
    assert ThreadedDispatcher().workers >= 1
